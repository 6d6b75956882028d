import logging

from pentair.bridge.base import BaseBridgeHandler, BridgeConnectError
from pentair.config.bridge_config import SerialBridgeConfig
from pentair.thing import ErrorCategory, Thing, ThingStatusDetail
from pentair.transport.base import PortInUseError, TransportResolver, UnsupportedOperationError
from pentair.transport.serial_transport import DATABITS_8, FLOWCONTROL_NONE, PARITY_NONE, STOPBITS_1

logger = logging.getLogger(__name__)

# line parameters of the Pentair RS-485 bus
BAUD_RATE = 9600


class SerialBridgeHandler(BaseBridgeHandler):
    """
    Bridge to a locally attached RS-485 adapter.
    :param serial_port_manager: resolves port names. Shared with other bridges, not owned here.
    """
    config_class = SerialBridgeConfig
    missing_locator_message = "no serial port configured"
    error_details = dict(BaseBridgeHandler.error_details)
    error_details[ErrorCategory.IO] = ThingStatusDetail.CONFIGURATION_ERROR

    def __init__(self, thing: Thing, serial_port_manager: TransportResolver, **kwargs):
        super().__init__(thing, **kwargs)
        self.serial_port_manager = serial_port_manager
        self.port_identifier = None

    def _open_transport(self, config):
        port_name = config.serialPort
        self.port_identifier = identifier = self.serial_port_manager.get_identifier(port_name)
        if identifier is None:
            raise BridgeConnectError(ErrorCategory.CONFIGURATION, "Configured serial port does not exist")

        logger.debug("connect port: %s" % port_name)
        if identifier.is_currently_owned():
            # opening may still succeed, lock files are advisory
            logger.warning("Serial port %s is currently being used by another application %s" %
                           (port_name, identifier.current_owner))

        try:
            port = identifier.open(self.owner, self.open_timeout)
        except PortInUseError as e:
            raise BridgeConnectError(ErrorCategory.RESOURCE_BUSY,
                                     "Serial port already in use: %s, %s" % (port_name, e)) from e
        except UnsupportedOperationError as e:
            raise BridgeConnectError(ErrorCategory.UNSUPPORTED_OPERATION,
                                     self.unsupported_message(e, port_name)) from e
        except OSError as e:
            raise BridgeConnectError(ErrorCategory.IO, self.io_error_message(e, port_name)) from e

        success = False
        try:
            port.set_serial_port_params(BAUD_RATE, DATABITS_8, STOPBITS_1, PARITY_NONE)
            port.set_flow_control_mode(FLOWCONTROL_NONE)
            success = True
        except UnsupportedOperationError as e:
            raise BridgeConnectError(ErrorCategory.UNSUPPORTED_OPERATION,
                                     self.unsupported_message(e, port_name)) from e
        except OSError as e:
            raise BridgeConnectError(ErrorCategory.IO, self.io_error_message(e, port_name)) from e
        finally:
            if not success:
                self._release(port)

        logger.debug("Pentair bridge connected to serial port: %s" % port_name)
        return port

    def unsupported_message(self, e, port_name):
        return "got unsupported operation %s on port %s" % (e, port_name)
