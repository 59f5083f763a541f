import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

# The default extension for configuration files
config_extension = '.cfg'

# the directory holding the configuration files shipped with the package
package_config_dir = os.path.dirname(__file__)

CONFIG_NAME = 'chat'


def config_flavor(name, flavor=None):
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory=None):
    """
    Determines the location of a config file in the given directory.
    """
    config_file = os.path.join(directory, name + config_extension)
    return config_file


def load_config_file_base(file, must_exist=True, **kwargs):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        kwargs.setdefault('interpolation', False)
        return ConfigObj(file, file_error=must_exist, **kwargs) \
            if must_exist or os.path.exists(file) else ConfigObj(**kwargs)
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, subpart=None, **kwargs) -> ConfigObj:
    """
    Loads a specialization of a config file. The configuration file is expected to be named
    after the base, followed by a period and then the specialization, if the specialization is given,
    otherwise just the base name. A missing file loads as an empty configuration.
    """
    configname = config_flavor(name, subpart)
    file = config_filename(configname, directory)
    return load_config_file_base(file, False, **kwargs)


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def describe_errors(config, result):
    """ lists the keys that failed validation as readable strings """
    errors = []
    for section_list, key, error in flatten_errors(config, result):
        path = '/'.join(section_list + ([key] if key is not None else []))
        errors.append('%s: %s' % (path, error if error is not False else 'missing'))
    return errors


def load_config(name=CONFIG_NAME, directory=None, package_directory=package_config_dir):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are loaded in this order, later ones overriding earlier ones:
        - the default configuration shipped with the package
        - the platform specialization
        - the user override in the home directory
        - the local configuration in the given directory
        The configurations are flattened into a single configuration, and then validated
        against the schema shipped with the package, which also converts the values to their types.
    :param directory: the location of the local configuration file. Defaults to the current directory.
    :return: the validated ConfigObj
    """
    directory = directory or os.getcwd()
    default_config = config_flavor_file(name, package_directory, 'default')
    platform_config = config_flavor_file(name, package_directory, os_name())
    user_config = load_config_file_base(os.path.expanduser(
        '~/' + name + config_extension), must_exist=False)
    local_config = config_flavor_file(name, directory)
    config = ConfigObj(interpolation=False)
    config.merge(default_config)
    config.merge(platform_config)
    config.merge(user_config)
    config.merge(local_config)

    config.configspec = config_flavor_file(name, package_directory, 'schema', _inspec=True)
    validator = Validator()
    result = config.validate(validator, preserve_errors=True)
    if result is not True:
        raise ConfigObjError("the config file %s failed validation: %s" %
                             (name, '; '.join(describe_errors(config, result))))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:        An iterable that lists the names of the sections to resolve
    :return: The configuration object identified by the path, or None
    """
    for p in path:    # lookup specific section
        conf = conf.get(p, None)
        if conf is None:
            return None
    return conf


def apply_conf(conf: Section, target):
    """
    Applies the attributes contained in a configuration object to a target object.
    It does this by iterating over the items in the configuration and setting any attributes with the same name.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)


def apply_conf_path(conf: Section, name_parts, target):
    """
    Applies a configuration section to a given target object
    :param conf:        The root configuration object
    :param name_parts:  The path of the section to apply
    :param target:      The target object that receives the configured values
    """
    conf = fetch_conf_path(conf, name_parts)
    if conf:
        apply_conf(conf, target)
