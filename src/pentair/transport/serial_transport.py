"""
Implements the serial transport over pyserial.
"""

import errno
import logging
import os
import time

import serial
from serial import SerialException, serial_for_url
from serial.tools import list_ports

from pentair.transport.base import TransportHandle, TransportIdentifier, TransportResolver, \
    PortInUseError, UnsupportedOperationError, TransportIOError

logger = logging.getLogger(__name__)

DATABITS_8 = serial.EIGHTBITS
STOPBITS_1 = serial.STOPBITS_ONE
PARITY_NONE = serial.PARITY_NONE

FLOWCONTROL_NONE = 0
FLOWCONTROL_RTSCTS = 1
FLOWCONTROL_XONXOFF = 2

# (rtscts, xonxoff) for each flow control mode
flow_control_modes = {
    FLOWCONTROL_NONE: (False, False),
    FLOWCONTROL_RTSCTS: (True, False),
    FLOWCONTROL_XONXOFF: (False, True),
}

# UUCP style lock files written by other serial port users
lock_directories = ('/var/lock', '/var/lock/lockdev', '/var/spool/locks')

busy_errnos = {errno.EBUSY, errno.EAGAIN, errno.EWOULDBLOCK}


def serial_port_info():
    """
    :return: a tuple of ListPortInfo for the serial ports present on this machine.
    """
    return tuple(list_ports.comports())


def serial_ports():
    """
    Returns a generator for all available serial port device names.
    """
    for port in serial_port_info():
        yield port.device


def is_busy_error(e: SerialException):
    """
    Determines if an error opening a port means the port is held by someone else.
    """
    text = str(e).lower()
    return getattr(e, 'errno', None) in busy_errnos or 'exclusively lock' in text \
        or 'busy' in text or 'access is denied' in text


class SerialPort(TransportHandle):
    """
    An open serial port.
    """

    def __init__(self, ser: serial.Serial, owner):
        self.ser = ser
        self.owner = owner

    @property
    def name(self):
        return self.ser.port

    def set_serial_port_params(self, baudrate, data_bits, stop_bits, parity):
        """
        :raises UnsupportedOperationError: when the driver rejects any of the parameters
        """
        try:
            self.ser.baudrate = baudrate
            self.ser.bytesize = data_bits
            self.ser.stopbits = stop_bits
            self.ser.parity = parity
        except (ValueError, SerialException) as e:
            raise UnsupportedOperationError("%s (%d %s%s%s)" % (e, baudrate, data_bits, parity, stop_bits)) from e

    def set_flow_control_mode(self, mode):
        if mode not in flow_control_modes:
            raise UnsupportedOperationError("unknown flow control mode %s" % mode)
        rtscts, xonxoff = flow_control_modes[mode]
        try:
            self.ser.rtscts = rtscts
            self.ser.xonxoff = xonxoff
            self.ser.dsrdtr = False
        except (ValueError, SerialException) as e:
            raise UnsupportedOperationError(str(e)) from e

    @property
    def input_stream(self):
        return self.ser if self.ser.is_open else None

    @property
    def output_stream(self):
        return self.ser if self.ser.is_open else None

    @property
    def is_open(self):
        return self.ser.is_open

    def close(self):
        if self.ser.is_open:
            self.ser.close()
            logger.debug("closed serial port %s" % self.name)


class SerialPortIdentifier(TransportIdentifier):
    """
    A serial port that exists but is not opened yet. The name is a device path or a pyserial URL.
    """
    poll_interval = 0.1

    def __init__(self, name, info=None, clock=time.monotonic, sleep=time.sleep):
        self._name = name
        self.info = info
        self._clock = clock
        self._sleep = sleep

    @property
    def name(self):
        return self._name

    def lock_files(self):
        base = os.path.basename(self._name)
        return [os.path.join(d, 'LCK..' + base) for d in lock_directories]

    def is_currently_owned(self):
        return self.current_owner is not None

    @property
    def current_owner(self):
        """ the pid in the first lock file found for this port, or the lock file name when unreadable. """
        if '://' in self._name:
            return None
        for lock_file in self.lock_files():
            if os.path.exists(lock_file):
                try:
                    with open(lock_file) as f:
                        return f.read().strip() or lock_file
                except OSError:
                    return lock_file
        return None

    def open(self, owner, timeout_ms):
        try:
            ser = serial_for_url(self._name, do_not_open=True, exclusive=True)
        except (ValueError, SerialException) as e:
            raise UnsupportedOperationError(str(e)) from e

        deadline = self._clock() + timeout_ms / 1000.0
        while True:
            try:
                ser.open()
                break
            except SerialException as e:
                if not is_busy_error(e):
                    raise TransportIOError(str(e)) from e
                if self._clock() >= deadline:
                    raise PortInUseError(str(e), self.current_owner) from e
                logger.debug("serial port %s busy, retrying" % self._name)
                self._sleep(self.poll_interval)
            except ValueError as e:
                raise UnsupportedOperationError(str(e)) from e

        logger.info("opened serial port %s for %s" % (self._name, owner))
        return SerialPort(ser, owner)


class SerialPortManager(TransportResolver):
    """
    Resolves port names against the ports listed by the operating system, existing device
    paths and pyserial URLs such as rfc2217://host:port.
    """

    def get_identifier(self, locator):
        if not locator:
            return None
        if '://' in locator:
            return self._url_identifier(locator)
        for info in self._fetch_ports():
            if locator in (info.device, info.name):
                return SerialPortIdentifier(info.device, info)
        if os.path.exists(locator):
            return SerialPortIdentifier(locator)
        logger.debug("serial port %s not found in %s" % (locator, list(self.port_names())))
        return None

    def _url_identifier(self, url):
        try:
            serial_for_url(url, do_not_open=True)
        except (ValueError, SerialException) as e:
            logger.debug("unsupported serial url %s: %s" % (url, e))
            return None
        return SerialPortIdentifier(url)

    def port_names(self):
        return (p.device for p in self._fetch_ports())

    def _fetch_ports(self):
        return serial_port_info()
