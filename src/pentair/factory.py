import logging

from pentair.binding_constants import CONTROLLER_THING_TYPE, INTELLICHEM_THING_TYPE, INTELLICHLOR_THING_TYPE, \
    INTELLIFLO_THING_TYPE, IP_BRIDGE_THING_TYPE, SERIAL_BRIDGE_THING_TYPE, SUPPORTED_THING_TYPES
from pentair.bridge.ip_bridge import IPBridgeHandler
from pentair.bridge.serial_bridge import SerialBridgeHandler
from pentair.config.bridge_config import BridgeSettings
from pentair.devices import ControllerHandler, IntelliChemHandler, IntelliChlorHandler, IntelliFloHandler
from pentair.thing import Thing, ThingTypeUID
from pentair.transport.serial_transport import SerialPortManager

logger = logging.getLogger(__name__)


class PentairHandlerFactory:
    """
    Creates the handler for a thing from its type. Types this factory does not know give None,
    so the platform can ask another factory.

    :param serial_port_manager: resolves serial port names for the serial bridges. It is shared
        with the bridges, not owned by the factory.
    :param settings: bridge-wide settings, see BridgeSettings
    :param processor_factory: called with the thing to create the protocol processor of each
        bridge; None uses the bridge's default.
    """

    def __init__(self, serial_port_manager=None, settings: BridgeSettings=None, processor_factory=None):
        self.serial_port_manager = serial_port_manager if serial_port_manager is not None else SerialPortManager()
        self.settings = settings if settings is not None else BridgeSettings()
        self.processor_factory = processor_factory
        handlers = {
            IP_BRIDGE_THING_TYPE: self._create_ip_bridge,
            SERIAL_BRIDGE_THING_TYPE: self._create_serial_bridge,
            CONTROLLER_THING_TYPE: ControllerHandler,
            INTELLIFLO_THING_TYPE: IntelliFloHandler,
            INTELLICHLOR_THING_TYPE: IntelliChlorHandler,
            INTELLICHEM_THING_TYPE: IntelliChemHandler,
        }
        self._constructors = {type_uid: handlers[type_uid] for type_uid in SUPPORTED_THING_TYPES}

    def supports_thing_type(self, thing_type_uid: ThingTypeUID) -> bool:
        return thing_type_uid in self._constructors

    def create_handler(self, thing: Thing):
        """
        :return: a new handler for the thing, or None if its type is not supported.
        """
        constructor = self._constructors.get(thing.thing_type_uid)
        if constructor is None:
            logger.debug("no handler for thing type %s" % thing.thing_type_uid)
            return None
        return constructor(thing)

    def register(self, thing_type_uid: ThingTypeUID, constructor):
        """ adds a device kind. The constructor is called with the thing. """
        self._constructors[thing_type_uid] = constructor

    def _bridge_options(self, thing):
        options = dict(open_timeout=self.settings.open_timeout, owner=self.settings.owner)
        if self.processor_factory is not None:
            options['processor'] = self.processor_factory(thing)
        return options

    def _create_ip_bridge(self, thing):
        return IPBridgeHandler(thing, **self._bridge_options(thing))

    def _create_serial_bridge(self, thing):
        return SerialBridgeHandler(thing, self.serial_port_manager, **self._bridge_options(thing))
