import threading
import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, is_, instance_of, none, not_none, contains_string, calling, raises, has_length, empty

from pentair.bridge.base import BaseBridgeHandler, BridgeConnectError, ConnectionState, StreamHolder
from pentair.thing import ErrorCategory, Thing, ThingStatus, ThingStatusDetail, ThingTypeUID
from pentair.transport.base import TransportHandle, TransportIdentifier, TransportResolver


class FakeHandle(TransportHandle):
    """ an open fake transport, tracked in the resolver's set of live handles. """

    def __init__(self, name, live, input_stream=b'in', output_stream=b'out'):
        self._name = name
        self.live = live
        self._input = input_stream
        self._output = output_stream
        self.stream_error = None
        self.close_error = None
        self.params_error = None
        self.flow_control_error = None
        self.params = None
        self.flow_control = None
        self.closed = False
        live.add(self)

    @property
    def name(self):
        return self._name

    @property
    def input_stream(self):
        if self.stream_error:
            raise self.stream_error
        return self._input

    @property
    def output_stream(self):
        return self._output

    @property
    def is_open(self):
        return not self.closed

    def set_serial_port_params(self, *params):
        if self.params_error:
            raise self.params_error
        self.params = params

    def set_flow_control_mode(self, mode):
        if self.flow_control_error:
            raise self.flow_control_error
        self.flow_control = mode

    def set_connection_params(self):
        if self.params_error:
            raise self.params_error
        self.params = 'tcp'

    def close(self):
        self.closed = True
        self.live.discard(self)
        if self.close_error:
            raise self.close_error


class FakeIdentifier(TransportIdentifier):

    def __init__(self, name, resolver, owner=None):
        self._name = name
        self.resolver = resolver
        self.owner = owner
        self.open_error = None
        self.opened = []
        self.handle_setup = None

    @property
    def name(self):
        return self._name

    def is_currently_owned(self):
        return self.owner is not None

    @property
    def current_owner(self):
        return self.owner

    def open(self, owner, timeout_ms):
        self.opened.append((owner, timeout_ms))
        if self.open_error:
            raise self.open_error
        handle = FakeHandle(self._name, self.resolver.live)
        if self.handle_setup:
            self.handle_setup(handle)
        return handle


class FakeResolver(TransportResolver):
    """ knows a fixed set of transports and tracks the handles that are still open. """

    def __init__(self, *names):
        self.live = set()
        self.identifiers = {name: FakeIdentifier(name, self) for name in names}
        self.resolved = []

    def get_identifier(self, locator):
        self.resolved.append(locator)
        return self.identifiers.get(locator)


class SampleConfig:
    configspec = [
        'port = string(default="")',
        'id = integer(default=34)',
        'discovery = boolean(default=False)',
    ]

    def __init__(self):
        self.port = ''
        self.id = 34
        self.discovery = False

    @property
    def locator(self):
        return self.port


class SampleBridgeHandler(BaseBridgeHandler):
    config_class = SampleConfig
    missing_locator_message = "no port configured"

    def __init__(self, thing, resolver, **kwargs):
        super().__init__(thing, **kwargs)
        self.resolver = resolver

    def _open_transport(self, config):
        identifier = self.resolver.get_identifier(config.port)
        if identifier is None:
            raise BridgeConnectError(ErrorCategory.CONFIGURATION, "no such port")
        return identifier.open(self.owner, self.open_timeout)


def bridge_thing(configuration):
    return Thing('pentair:sample_bridge:1', ThingTypeUID('pentair', 'sample_bridge'), configuration)


class BaseBridgeHandlerTest(unittest.TestCase):

    def setUp(self):
        self.resolver = FakeResolver('port1')
        self.thing = bridge_thing({'port': 'port1', 'id': 20, 'discovery': True})
        self.sut = SampleBridgeHandler(self.thing, self.resolver)
        self.events = []
        self.sut.events += self.events.append

    def assert_offline_error(self, category, detail, message=None):
        assert_that(self.sut.state, is_(ConnectionState.OFFLINE_ERROR))
        info = self.sut.status_info
        assert_that(info.status, is_(ThingStatus.OFFLINE))
        assert_that(info.detail, is_(detail))
        assert_that(info.category, is_(category))
        if message:
            assert_that(info.description, contains_string(message))
        assert_that(self.sut.transport, is_(none()))
        assert_that(self.resolver.live, is_(empty()))

    def test_initial_state(self):
        assert_that(self.sut.state, is_(ConnectionState.OFFLINE))
        assert_that(self.sut.transport, is_(none()))
        assert_that(self.sut.online, is_(False))
        assert_that(self.sut.processor, instance_of(StreamHolder))

    def test_abstract_open_transport(self):
        sut = BaseBridgeHandler(self.thing)
        assert_that(calling(sut._open_transport).with_args(None), raises(NotImplementedError))

    def test_connect(self):
        assert_that(self.sut.connect(), is_(True))
        assert_that(self.sut.state, is_(ConnectionState.ONLINE))
        assert_that(self.sut.status_info.status, is_(ThingStatus.ONLINE))
        assert_that(self.sut.transport, is_(not_none()))
        assert_that(self.resolver.live, has_length(1))
        assert_that(self.sut.processor.input_stream, is_(b'in'))
        assert_that(self.sut.processor.output_stream, is_(b'out'))
        assert_that(self.sut.id, is_(20))
        assert_that(self.sut.discovery, is_(True))
        assert_that(self.sut.last_error, is_(none()))

    def test_connect_passes_owner_and_timeout(self):
        sut = SampleBridgeHandler(self.thing, self.resolver, owner='me', open_timeout=50)
        sut.connect()
        assert_that(self.resolver.identifiers['port1'].opened, is_([('me', 50)]))

    def test_connect_when_online_keeps_transport(self):
        self.sut.connect()
        transport = self.sut.transport
        assert_that(self.sut.connect(), is_(True))
        assert_that(self.sut.transport, is_(transport))
        assert_that(self.resolver.live, has_length(1))

    def test_online_status_published_with_transport(self):
        seen = []
        self.sut.events += lambda e: seen.append((e.status_info.status, self.sut.transport is not None))
        self.sut.connect()
        self.sut.disconnect()
        assert_that(seen, is_([(ThingStatus.ONLINE, True), (ThingStatus.OFFLINE, True)]))
        assert_that(self.sut.transport, is_(none()))

    def test_empty_locator(self):
        self.thing.configuration['port'] = ''
        assert_that(self.sut.connect(), is_(False))
        self.assert_offline_error(ErrorCategory.CONFIGURATION, ThingStatusDetail.CONFIGURATION_ERROR,
                                  "no port configured")
        assert_that(self.resolver.resolved, is_(empty()))

    def test_invalid_configuration(self):
        self.thing.configuration['id'] = 'twenty'
        assert_that(self.sut.connect(), is_(False))
        self.assert_offline_error(ErrorCategory.CONFIGURATION, ThingStatusDetail.CONFIGURATION_ERROR, "id")
        assert_that(self.resolver.resolved, is_(empty()))

    def test_configuration_read_on_each_connect(self):
        self.thing.configuration['port'] = 'port2'
        assert_that(self.sut.connect(), is_(False))
        self.assert_offline_error(ErrorCategory.CONFIGURATION, ThingStatusDetail.CONFIGURATION_ERROR, "no such port")

        self.thing.configuration['port'] = 'port1'
        assert_that(self.sut.connect(), is_(True))
        assert_that(self.sut.config.port, is_('port1'))
        assert_that(self.sut.last_error, is_(none()))

    def test_stream_io_error_releases_transport(self):
        def broken(handle):
            handle.stream_error = IOError("stream gone")
        self.resolver.identifiers['port1'].handle_setup = broken
        assert_that(self.sut.connect(), is_(False))
        self.assert_offline_error(ErrorCategory.IO, ThingStatusDetail.COMMUNICATION_ERROR,
                                  "got I/O error stream gone on port port1")
        assert_that(self.sut.processor.input_stream, is_(none()))

    def test_missing_stream_is_skipped(self):
        def no_output(handle):
            handle._output = None
        self.resolver.identifiers['port1'].handle_setup = no_output
        assert_that(self.sut.connect(), is_(True))
        assert_that(self.sut.processor.input_stream, is_(b'in'))
        assert_that(self.sut.processor.output_stream, is_(none()))

    def test_missing_stream_required(self):
        def no_output(handle):
            handle._output = None
        self.resolver.identifiers['port1'].handle_setup = no_output
        sut = SampleBridgeHandler(self.thing, self.resolver, require_streams=True)
        assert_that(sut.connect(), is_(False))
        assert_that(sut.status_info.category, is_(ErrorCategory.IO))
        assert_that(sut.status_info.description, is_("no output stream on port port1"))
        assert_that(self.resolver.live, is_(empty()))

    def test_processor_error_releases_transport(self):
        processor = Mock()
        processor.set_output_stream.side_effect = IOError("processor closed")
        sut = SampleBridgeHandler(self.thing, self.resolver, processor=processor)
        assert_that(sut.connect(), is_(False))
        assert_that(sut.status_info.category, is_(ErrorCategory.IO))
        processor.clear_streams.assert_called_once()
        assert_that(self.resolver.live, is_(empty()))

    def test_unexpected_error_reported_offline(self):
        self.resolver.identifiers['port1'].open_error = RuntimeError("bug")
        assert_that(self.sut.connect(), is_(False))
        assert_that(self.sut.state, is_(ConnectionState.OFFLINE_ERROR))
        assert_that(self.sut.transport, is_(none()))
        info = self.sut.status_info
        assert_that(info.status, is_(ThingStatus.OFFLINE))
        assert_that(info.detail, is_(ThingStatusDetail.COMMUNICATION_ERROR))
        assert_that(info.category, is_(ErrorCategory.IO))
        assert_that(info.description, contains_string("bug"))
        assert_that(self.resolver.live, is_(empty()))

    def test_unexpected_error_after_open_releases_transport(self):
        self.sut.processor = Mock()
        self.sut.processor.set_output_stream.side_effect = RuntimeError("bug")
        assert_that(self.sut.connect(), is_(False))
        assert_that(self.sut.status_info.status, is_(ThingStatus.OFFLINE))
        assert_that(self.sut.transport, is_(none()))
        assert_that(self.resolver.live, is_(empty()))

    def test_error_detail_override(self):
        class DetailBridge(SampleBridgeHandler):
            def _open_transport(self, config):
                raise BridgeConnectError(ErrorCategory.IO, "flaky", ThingStatusDetail.CONFIGURATION_ERROR)
        sut = DetailBridge(self.thing, self.resolver)
        sut.connect()
        assert_that(sut.status_info.detail, is_(ThingStatusDetail.CONFIGURATION_ERROR))
        assert_that(sut.last_error.message, is_("flaky"))

    def test_disconnect(self):
        self.sut.connect()
        transport = self.sut.transport
        self.sut.disconnect()
        assert_that(self.sut.state, is_(ConnectionState.OFFLINE))
        assert_that(self.sut.status_info.status, is_(ThingStatus.OFFLINE))
        assert_that(self.sut.status_info.detail, is_(ThingStatusDetail.NONE))
        assert_that(transport.closed, is_(True))
        assert_that(self.sut.transport, is_(none()))
        assert_that(self.sut.processor.input_stream, is_(none()))
        assert_that(self.resolver.live, is_(empty()))

    def test_disconnect_when_offline(self):
        self.sut.disconnect()
        self.sut.disconnect()
        assert_that(self.sut.state, is_(ConnectionState.OFFLINE))
        assert_that(self.sut.status_info.status, is_(ThingStatus.OFFLINE))

    def test_disconnect_swallows_close_error(self):
        self.sut.connect()
        self.sut.transport.close_error = IOError("already unplugged")
        self.sut.disconnect()
        assert_that(self.sut.transport, is_(none()))
        assert_that(self.sut.state, is_(ConnectionState.OFFLINE))

    def test_disconnect_after_failed_connect(self):
        self.thing.configuration['port'] = ''
        self.sut.connect()
        self.sut.disconnect()
        assert_that(self.sut.state, is_(ConnectionState.OFFLINE))
        assert_that(self.sut.status_info.detail, is_(ThingStatusDetail.NONE))

    def test_initialize_and_dispose(self):
        self.sut.initialize()
        assert_that(self.sut.online, is_(True))
        self.sut.dispose()
        assert_that(self.sut.online, is_(False))
        assert_that(self.resolver.live, is_(empty()))

    def test_snapshot(self):
        self.sut.connect()
        status, transport = self.sut.snapshot()
        assert_that(status.status, is_(ThingStatus.ONLINE))
        assert_that(transport, is_(self.sut.transport))


class BridgeSerializationTest(unittest.TestCase):

    @timeout_decorator.timeout(30)
    def test_concurrent_connect_and_disconnect(self):
        resolver = FakeResolver('port1')
        sut = SampleBridgeHandler(bridge_thing({'port': 'port1'}), resolver)
        violations = []
        stop = threading.Event()

        def cycle(operation):
            for _ in range(300):
                operation()

        def observe():
            while not stop.is_set():
                status, transport = sut.snapshot()
                if status.online != (transport is not None):
                    violations.append((status, transport))

        observer = threading.Thread(target=observe)
        observer.start()
        workers = [threading.Thread(target=cycle, args=(sut.connect,)),
                   threading.Thread(target=cycle, args=(sut.disconnect,))]
        for w in workers:
            w.start()
        for w in workers:
            w.join()
        stop.set()
        observer.join()

        assert_that(violations, is_(empty()))
        assert_that(len(resolver.live), is_(1 if sut.online else 0))
        sut.disconnect()
        assert_that(resolver.live, is_(empty()))
