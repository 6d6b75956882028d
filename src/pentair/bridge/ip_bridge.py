import logging

from pentair.bridge.base import BaseBridgeHandler, BridgeConnectError
from pentair.config.bridge_config import IPBridgeConfig
from pentair.thing import ErrorCategory, Thing
from pentair.transport.base import TransportError, TransportResolver, UnsupportedOperationError
from pentair.transport.socket_transport import NetworkResolver

logger = logging.getLogger(__name__)


class IPBridgeHandler(BaseBridgeHandler):
    """
    Bridge to a network RS-485 adapter reached over TCP.
    """
    config_class = IPBridgeConfig
    missing_locator_message = "no address configured"

    def __init__(self, thing: Thing, resolver: TransportResolver=None, **kwargs):
        super().__init__(thing, **kwargs)
        self.resolver = resolver if resolver is not None else NetworkResolver()

    def _open_transport(self, config):
        locator = config.locator
        endpoint = self.resolver.get_identifier(locator)
        if endpoint is None:
            raise BridgeConnectError(ErrorCategory.CONFIGURATION, "unable to resolve address %s" % config.address)

        logger.debug("connect to: %s" % locator)
        try:
            sock = endpoint.open(self.owner, self.open_timeout)
        except UnsupportedOperationError as e:
            raise BridgeConnectError(ErrorCategory.UNSUPPORTED_OPERATION,
                                     "got unsupported operation %s on %s" % (e, locator)) from e
        except (TransportError, OSError) as e:
            raise BridgeConnectError(ErrorCategory.IO, "unable to connect to %s: %s" % (locator, e)) from e

        success = False
        try:
            sock.set_connection_params()
            success = True
        except UnsupportedOperationError as e:
            raise BridgeConnectError(ErrorCategory.UNSUPPORTED_OPERATION,
                                     "got unsupported operation %s on %s" % (e, locator)) from e
        except OSError as e:
            raise BridgeConnectError(ErrorCategory.IO, self.io_error_message(e, locator)) from e
        finally:
            if not success:
                self._release(sock)
        return sock

    def io_error_message(self, e, locator):
        return "got I/O error %s on %s" % (e, locator)
