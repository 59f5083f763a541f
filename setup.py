"""
Packaging for the p2pchat peer-to-peer chat.

Installs the `p2pchat` console command. Run the tests with `pytest`; the network tests that start real
libp2p hosts are run with `pytest integrate`.
"""

from setuptools import setup

setup(
    name='p2pchat',
    version='0.0.1',
    description='Peer-to-peer text chat between two libp2p hosts.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['p2pchat', 'p2pchat.conduit', 'p2pchat.config', 'p2pchat.protocol', 'p2pchat.session',
              'p2pchat.support', 'p2pchat.transport'],
    package_data={'p2pchat.config': ['*.cfg']},
    python_requires='>=3.10',
    install_requires=[
        'configobj>=5.0.8',
        'libp2p>=0.2.9',
        'multiaddr>=0.0.9',
        'trio>=0.22',
    ],
    extras_require={
        'test': [
            'PyHamcrest>=2.0',
            'timeout-decorator>=0.5',
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'p2pchat=p2pchat.main:run',
        ],
    },
    zip_safe=False,
)
