"""
Typed configuration for the bridge things, and the bridge-wide settings.
The attribute names follow the keys of the thing configuration.
"""
from configobj import ConfigObj

from pentair.binding_constants import DEFAULT_BRIDGE_ID, PORT_OWNER
from pentair.config.config import load_config, apply_conf, validate_config


class SerialBridgeConfig:
    configspec = [
        'serialPort = string(default="")',
        'id = integer(min=0, max=255, default=%d)' % DEFAULT_BRIDGE_ID,
        'discovery = boolean(default=False)',
    ]

    def __init__(self):
        self.serialPort = ''
        self.id = DEFAULT_BRIDGE_ID
        self.discovery = False

    @property
    def locator(self):
        return self.serialPort


class IPBridgeConfig:
    configspec = [
        'address = string(default="")',
        'port = integer(min=1, max=65535, default=10000)',
        'id = integer(min=0, max=255, default=%d)' % DEFAULT_BRIDGE_ID,
        'discovery = boolean(default=False)',
    ]

    def __init__(self):
        self.address = ''
        self.port = 10000
        self.id = DEFAULT_BRIDGE_ID
        self.discovery = False

    @property
    def locator(self):
        """
        >>> c = IPBridgeConfig(); c.address = 'fe80::1'; c.locator
        '[fe80::1]:10000'
        """
        if not self.address:
            return ''
        host = '[%s]' % self.address if ':' in self.address else self.address
        return '%s:%d' % (host, self.port)


class BridgeSettings:
    """
    Settings shared by all bridges: how long to wait for a busy port (milliseconds), the owner
    tag recorded when opening a port, and how often to retry an offline bridge (seconds).
    """
    configspec = [
        'open_timeout = integer(min=0, default=10000)',
        'owner = string(default="%s")' % PORT_OWNER,
        'retry_period = float(min=0, default=60.0)',
    ]

    def __init__(self):
        self.open_timeout = 10000
        self.owner = PORT_OWNER
        self.retry_period = 60.0


def load_settings(directory=None, name='pentair') -> BridgeSettings:
    """
    Loads the bridge settings from the layered configuration files `name` in `directory`.
    Without a directory, the defaults are returned.
    """
    if directory is None:
        config = validate_config(ConfigObj(), BridgeSettings.configspec, name)
    else:
        config = load_config(name, directory, BridgeSettings.configspec)
    return apply_conf(config, BridgeSettings())
