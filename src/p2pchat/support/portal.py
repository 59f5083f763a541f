"""
Runs a trio event loop on a background thread so that blocking code on other threads can call into it.

libp2p is written for trio, while the chat session runs each reader on its own thread. The portal is the
single place where the two meet: threads hand coroutines to the portal and block until they complete.
"""
import logging
import threading

import trio

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """ Raised when the portal is used before it is started or after it has stopped. """


class TrioPortal:
    """
    Owns a trio event loop running on a daemon thread.

    Tasks that must outlive a single call (such as a running libp2p host) are started in the portal's nursery
    with start(). Calls from other threads use run() and run_sync(), which block the calling thread until the
    function has completed on the trio thread, and return its result or raise its exception.
    """

    def __init__(self, name='trio-portal'):
        self.name = name
        self._thread = None
        self._token = None
        self._nursery = None
        self._stopped = None
        self._ready = threading.Event()
        self._error = None

    @property
    def running(self) -> bool:
        return self._token is not None and self._thread is not None and self._thread.is_alive()

    def start(self):
        """ starts the event loop thread and waits until the loop is accepting calls. """
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self.name)
        self._thread.daemon = True
        self._thread.start()
        self._ready.wait()
        if self._error is not None:
            raise PortalError("trio loop failed to start") from self._error

    def _run(self):
        try:
            trio.run(self._main)
        except BaseException as e:
            self._error = e
            logger.exception("trio loop terminated")
        finally:
            self._token = None
            self._ready.set()

    async def _main(self):
        self._stopped = trio.Event()
        async with trio.open_nursery() as nursery:
            self._nursery = nursery
            self._token = trio.lowlevel.current_trio_token()
            self._ready.set()
            await self._stopped.wait()
            nursery.cancel_scope.cancel()
        self._nursery = None

    def _check_running(self):
        if self._token is None:
            raise PortalError("portal %s is not running" % self.name)
        return self._token

    def run(self, async_fn, *args):
        """ runs an async function on the trio thread, blocking until it completes. """
        return trio.from_thread.run(async_fn, *args, trio_token=self._check_running())

    def run_sync(self, fn, *args):
        """ runs a regular function on the trio thread, blocking until it completes. """
        return trio.from_thread.run_sync(fn, *args, trio_token=self._check_running())

    def start_task(self, async_fn, *args):
        """
        Starts a long running task in the portal's nursery. The task must call task_status.started(value) once it
        is ready; this method returns that value. Exceptions raised before started() propagate to the caller.
        """
        return self.run(self._start_in_nursery, async_fn, args)

    async def _start_in_nursery(self, async_fn, args):
        return await self._nursery.start(async_fn, *args)

    def stop(self, timeout=None):
        """ cancels all tasks started in the portal and waits for the loop thread to exit. """
        thread = self._thread
        if thread is None:
            return
        if self._token is not None:
            try:
                self.run_sync(self._stopped.set)
            except (trio.RunFinishedError, PortalError):
                pass
        if thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
