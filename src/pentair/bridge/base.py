import logging
import threading
from abc import abstractmethod
from enum import Enum

from configobj import ConfigObjError

from pentair.binding_constants import DEFAULT_BRIDGE_ID, PORT_OWNER
from pentair.config.config import get_config_as
from pentair.thing import BaseThingHandler, ErrorCategory, Thing, ThingStatus, ThingStatusDetail
from pentair.transport.base import TransportHandle

logger = logging.getLogger(__name__)

# milliseconds to wait for a busy port
DEFAULT_OPEN_TIMEOUT = 10000


class ConnectionState(Enum):
    OFFLINE = 'OFFLINE'
    CONNECTING = 'CONNECTING'
    ONLINE = 'ONLINE'
    OFFLINE_ERROR = 'OFFLINE_ERROR'


class BridgeConnectError(Exception):
    """
    A connection attempt failed. Raised by the steps of connect() and converted into the
    offline status; it never escapes connect().
    :param category: the ErrorCategory of the failure
    :param message: the human readable reason shown with the status
    :param detail: overrides the status detail the bridge maps the category to
    """

    def __init__(self, category: ErrorCategory, message, detail=None):
        super().__init__(message)
        self.category = category
        self.message = message
        self.detail = detail


class ProtocolProcessor:
    """ Consumes the byte streams of an online bridge. The bus protocol itself lives behind this. """

    @abstractmethod
    def set_input_stream(self, stream):
        raise NotImplementedError

    @abstractmethod
    def set_output_stream(self, stream):
        raise NotImplementedError

    @abstractmethod
    def clear_streams(self):
        raise NotImplementedError


class StreamHolder(ProtocolProcessor):
    """ Keeps the installed streams so that a protocol implementation can pick them up. """

    def __init__(self):
        self.input_stream = None
        self.output_stream = None

    def set_input_stream(self, stream):
        self.input_stream = stream

    def set_output_stream(self, stream):
        self.output_stream = stream

    def clear_streams(self):
        self.input_stream = None
        self.output_stream = None


class BaseBridgeHandler(BaseThingHandler):
    """
    Manages the connect/disconnect cycle of one transport.

    connect() and disconnect() run under the same re-entrant lock, which also guards the status,
    so the status is ONLINE exactly when a transport is held. The transport slot is only set
    once every setup step has succeeded, and anything acquired by a failed attempt is released
    before the failure is reported.

    Subclasses provide `config_class` and implement _open_transport().
    """
    config_class = None
    missing_locator_message = "no transport configured"

    # status detail reported for each category of connect failure
    error_details = {
        ErrorCategory.CONFIGURATION: ThingStatusDetail.CONFIGURATION_ERROR,
        ErrorCategory.RESOURCE_BUSY: ThingStatusDetail.CONFIGURATION_ERROR,
        ErrorCategory.UNSUPPORTED_OPERATION: ThingStatusDetail.CONFIGURATION_ERROR,
        ErrorCategory.IO: ThingStatusDetail.COMMUNICATION_ERROR,
    }

    def __init__(self, thing: Thing, processor: ProtocolProcessor=None, open_timeout=DEFAULT_OPEN_TIMEOUT,
                 owner=PORT_OWNER, require_streams=False):
        """
        :param processor: receives the streams while the bridge is online
        :param open_timeout: milliseconds to wait for a busy transport
        :param owner: the tag recorded as the owner of the opened transport
        :param require_streams: when True, a transport missing its input or output stream fails
            the connection. Otherwise the missing direction is skipped.
        """
        super().__init__(thing)
        self.processor = processor if processor is not None else StreamHolder()
        self.open_timeout = open_timeout
        self.owner = owner
        self.require_streams = require_streams
        self.lock = threading.RLock()
        self._status_lock = self.lock
        self.config = None
        self.id = DEFAULT_BRIDGE_ID
        self.discovery = False
        self._state = ConnectionState.OFFLINE
        self._transport = None
        self._last_error = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def transport(self) -> TransportHandle:
        return self._transport

    @property
    def last_error(self) -> BridgeConnectError:
        return self._last_error

    @property
    def online(self):
        return self._state is ConnectionState.ONLINE

    def snapshot(self):
        """ :return: the status and the transport, read together under the bridge lock. """
        with self.lock:
            return self.status_info, self._transport

    def initialize(self):
        self.connect()

    def dispose(self):
        self.disconnect()

    def connect(self) -> bool:
        """
        Acquires the transport and installs its streams into the protocol processor.
        The configuration is read again on each call.
        :return: True if the bridge is online.
        """
        with self.lock:
            if self._state is ConnectionState.ONLINE:
                return True
            self._state = ConnectionState.CONNECTING
            try:
                transport = self._connect()
            except BridgeConnectError as e:
                self._connect_failed(e)
                return False
            except Exception as e:
                logger.exception("%s unexpected error while connecting: %s" % (self.thing.uid, e))
                error = BridgeConnectError(ErrorCategory.IO, "unexpected error: %s" % e,
                                           ThingStatusDetail.COMMUNICATION_ERROR)
                self._connect_failed(error)
                return False

            self._transport = transport
            self._state = ConnectionState.ONLINE
            self._last_error = None
            logger.info("%s connected to %s" % (self.thing.uid, self.config.locator))
            self.update_status(ThingStatus.ONLINE)
            return True

    def _connect(self) -> TransportHandle:
        self.config = config = self._read_config()
        self.id = config.id
        self.discovery = config.discovery
        logger.debug("%s bus id: %s, discovery: %s" % (self.thing.uid, self.id, self.discovery))

        if not config.locator:
            raise BridgeConnectError(ErrorCategory.CONFIGURATION, self.missing_locator_message)

        transport = self._open_transport(config)
        success = False
        try:
            self._install_streams(transport, config.locator)
            success = True
        finally:
            if not success:
                self._clear_streams()
                self._release(transport)
        return transport

    def _read_config(self):
        try:
            return get_config_as(self.thing.configuration, self.config_class, str(self.thing.uid))
        except ConfigObjError as e:
            raise BridgeConnectError(ErrorCategory.CONFIGURATION, str(e)) from e

    @abstractmethod
    def _open_transport(self, config) -> TransportHandle:
        """
        Template method for subclasses to resolve, open and configure the transport.
        On failure, raises BridgeConnectError after releasing anything it acquired.
        """
        raise NotImplementedError

    def _install_streams(self, transport: TransportHandle, locator):
        try:
            input_stream = transport.input_stream
            output_stream = transport.output_stream
        except OSError as e:
            raise BridgeConnectError(ErrorCategory.IO, self.io_error_message(e, locator)) from e

        missing = [name for name, stream in (('input', input_stream), ('output', output_stream)) if stream is None]
        if missing:
            message = "no %s stream on port %s" % (' or '.join(missing), locator)
            if self.require_streams:
                raise BridgeConnectError(ErrorCategory.IO, message)
            logger.warning(message)

        try:
            if input_stream is not None:
                self.processor.set_input_stream(input_stream)
            if output_stream is not None:
                self.processor.set_output_stream(output_stream)
        except OSError as e:
            raise BridgeConnectError(ErrorCategory.IO, self.io_error_message(e, locator)) from e

    def io_error_message(self, e, locator):
        return "got I/O error %s on port %s" % (e, locator)

    def _connect_failed(self, e: BridgeConnectError):
        self._state = ConnectionState.OFFLINE_ERROR
        self._last_error = e
        detail = e.detail or self.error_details[e.category]
        logger.warning("%s unable to connect: %s" % (self.thing.uid, e.message))
        self.update_status(ThingStatus.OFFLINE, detail, e.message, e.category)

    def disconnect(self):
        """
        Reports the bridge offline, then releases the transport. Does nothing more when
        already offline.
        """
        with self.lock:
            self._state = ConnectionState.OFFLINE
            self.update_status(ThingStatus.OFFLINE)
            transport, self._transport = self._transport, None
            if transport is not None:
                self._clear_streams()
                self._release(transport)
                logger.info("%s disconnected" % self.thing.uid)

    def _clear_streams(self):
        try:
            self.processor.clear_streams()
        except Exception as e:
            logger.exception("error detaching streams of %s: %s" % (self.thing.uid, e))

    def _release(self, transport: TransportHandle):
        """ closes the transport, logging but not raising any error. """
        try:
            transport.close()
        except Exception as e:
            logger.exception("error closing %s: %s" % (transport.name, e))
