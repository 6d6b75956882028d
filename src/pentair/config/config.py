import os
import platform

from configobj import ConfigObj, ConfigObjError, flatten_errors
from validate import Validator

# The default extension for configuration files
config_extension = '.cfg'


def config_flavor(name, flavor=None):
    return name if not flavor else name + '.' + flavor


def config_filename(name, directory):
    """
    Determines the location of a config file in the given directory.
    """
    return os.path.join(directory, name + config_extension)


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, flavor=None) -> ConfigObj:
    """
    Loads a specialization of a config file, named after the base, a period and the flavor.
    Missing files give an empty configuration.
    """
    return load_config_file_base(config_filename(config_flavor(name, flavor), directory), False)


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


def validation_errors(config: ConfigObj, result):
    """
    Describes the failed keys of a validation result.
    :return: a list of "key: reason" strings
    """
    errors = []
    for sections, key, error in flatten_errors(config, result):
        name = '.'.join(sections + [key]) if key is not None else '.'.join(sections)
        reason = str(error) if error else 'missing'
        errors.append('%s: %s' % (name, reason))
    return errors


def validate_config(config: ConfigObj, configspec, name):
    """
    Validates a configuration against the configspec, converting values to their declared
    types and filling in defaults.
    :raises ConfigObjError: when any value does not validate
    """
    config.configspec = ConfigObj(configspec, list_values=False, _inspec=True) \
        if not isinstance(configspec, ConfigObj) else configspec
    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        raise ConfigObjError("the configuration %s failed validation: %s" %
                             (name, ', '.join(validation_errors(config, result))))
    return config


def load_config(name, directory, configspec):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are merged in this order, later ones taking precedence:
        - the default specialization
        - the platform specialization
        - the user override in the home directory
        - the base configuration
        The merged configuration is then validated against the configspec.
    :param directory: the location of the configuration files
    :return: the validated ConfigObj
    """
    config = ConfigObj()
    config.merge(config_flavor_file(name, directory, 'default'))
    config.merge(config_flavor_file(name, directory, os_name()))
    config.merge(load_config_file_base(os.path.expanduser('~/' + name + config_extension), must_exist=False))
    config.merge(config_flavor_file(name, directory))
    return validate_config(config, configspec, name)


def apply_conf(conf, target):
    """
    Applies the attributes contained in a configuration object to a target object,
    setting any attributes with the same name. Unknown keys are ignored.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)
    return target


def get_config_as(configuration, config_class, name=None):
    """
    Builds a typed configuration object from a thing's configuration mapping.
    The mapping is validated against `config_class.configspec`; missing keys take the
    defaults from the spec and None values count as missing.
    :raises ConfigObjError: when a value does not validate
    """
    values = {k: v for k, v in (configuration or {}).items() if v is not None}
    config = ConfigObj(values)
    validate_config(config, config_class.configspec, name or config_class.__name__)
    return apply_conf(config, config_class())
