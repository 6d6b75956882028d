from abc import abstractmethod
from io import IOBase


class TransportError(Exception):
    """ Indicates a transport could not be opened or configured. """


class PortInUseError(TransportError):
    """ The transport exists but is held by another owner. """

    def __init__(self, message, owner=None):
        super().__init__(message)
        self.owner = owner


class UnsupportedOperationError(TransportError):
    """ The transport rejected a parameter or operation required by the protocol. """


class TransportIOError(TransportError, IOError):
    """ A low-level I/O failure while opening or setting up the transport streams. """


class TransportHandle:
    """
    Ownership of an open transport. Whoever holds the handle is the only reader and writer
    of the underlying resource until it is closed.
    """

    @property
    @abstractmethod
    def name(self):
        raise NotImplementedError

    @property
    @abstractmethod
    def input_stream(self) -> IOBase:
        """ the file-like stream the protocol reads from, or None if unavailable. """
        raise NotImplementedError

    @property
    @abstractmethod
    def output_stream(self) -> IOBase:
        """ the file-like stream the protocol writes to, or None if unavailable. """
        raise NotImplementedError

    @property
    @abstractmethod
    def is_open(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """ Releases the transport. Closing an already closed handle does nothing. """
        raise NotImplementedError


class TransportIdentifier:
    """
    A resolved, not yet opened, transport endpoint.
    """

    @property
    @abstractmethod
    def name(self):
        raise NotImplementedError

    @abstractmethod
    def is_currently_owned(self) -> bool:
        """ Determines if another process reports itself as holding this transport. """
        raise NotImplementedError

    @property
    def current_owner(self):
        """ a description of the current owner, when known. """
        return None

    @abstractmethod
    def open(self, owner, timeout_ms) -> TransportHandle:
        """
        Opens the transport.
        :param owner: a tag identifying the new owner
        :param timeout_ms: how long to wait for a busy transport to become free
        :raises PortInUseError: the transport is still held by another owner after the timeout
        :raises UnsupportedOperationError: the transport cannot be used in the requested way
        :raises TransportIOError: the transport failed to open
        """
        raise NotImplementedError


class TransportResolver:
    """ Resolves configured locators to transport identifiers. """

    @abstractmethod
    def get_identifier(self, locator) -> TransportIdentifier:
        """
        :return: the identifier for the locator, or None when no such transport exists.
        """
        raise NotImplementedError
