import logging
import socket

from pentair.transport.base import TransportHandle, TransportIdentifier, TransportResolver, \
    UnsupportedOperationError, TransportIOError

logger = logging.getLogger(__name__)


def split_locator(locator, default_port=None):
    """
    Splits a network locator into host and port.

    >>> split_locator('pool.local:10000')
    ('pool.local', 10000)
    >>> split_locator('10.0.0.5', 9801)
    ('10.0.0.5', 9801)
    >>> split_locator('[fe80::1]:23')
    ('fe80::1', 23)
    """
    host, port = locator, default_port
    if locator.startswith('['):
        host, _, rest = locator[1:].partition(']')
        if rest.startswith(':'):
            port = rest[1:]
    elif locator.count(':') == 1:
        host, port = locator.split(':')
    if port is None or port == '':
        raise ValueError("no port given in %s" % locator)
    return host, int(port)


class SocketTransport(TransportHandle):
    """
    A connected TCP socket to a network RS-485 adapter.
    :param sock The open, connected socket
    """

    def __init__(self, sock: socket.socket, name):
        self.sock = sock
        self._name = name
        self._input = None
        self._output = None

    @property
    def name(self):
        return self._name

    def set_connection_params(self, no_delay=True, keep_alive=True):
        """
        :raises UnsupportedOperationError: when the socket rejects an option
        """
        try:
            self.sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1 if no_delay else 0)
            self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1 if keep_alive else 0)
            self.sock.settimeout(None)
        except OSError as e:
            raise UnsupportedOperationError(str(e)) from e

    @property
    def input_stream(self):
        if self._input is None and self.is_open:
            self._input = self.sock.makefile('rb')
        return self._input

    @property
    def output_stream(self):
        if self._output is None and self.is_open:
            self._output = self.sock.makefile('wb')
        return self._output

    @property
    def is_open(self):
        return self.sock.fileno() >= 0

    def close(self):
        for stream in (self._input, self._output):
            if stream is not None:
                stream.close()
        self._input = self._output = None
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass    # the peer may have closed the socket already
        finally:
            self.sock.close()


class NetworkEndpoint(TransportIdentifier):
    """
    A resolved host and port.
    """

    def __init__(self, host, port, address=None):
        self.host = host
        self.port = port
        self.address = address

    @property
    def name(self):
        return '%s:%d' % (self.host, self.port)

    def is_currently_owned(self):
        return False

    def open(self, owner, timeout_ms):
        try:
            sock = socket.create_connection((self.host, self.port), timeout_ms / 1000.0)
        except OSError as e:
            raise TransportIOError(str(e) or type(e).__name__) from e
        logger.info("opened socket to %s for %s" % (self.name, owner))
        return SocketTransport(sock, self.name)


class NetworkResolver(TransportResolver):
    """
    Resolves host:port locators with getaddrinfo.
    """

    def __init__(self, default_port=None):
        self.default_port = default_port

    def get_identifier(self, locator):
        if not locator:
            return None
        try:
            host, port = split_locator(locator, self.default_port)
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except (ValueError, OSError) as e:
            logger.debug("unable to resolve %s: %s" % (locator, e))
            return None
        address = infos[0][4][0] if infos else None
        return NetworkEndpoint(host, port, address)
