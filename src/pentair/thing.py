"""
The parts of the hosting platform's thing model that the bridge core reads and writes:
thing type ids, things and their configuration, and the status published for each handler.
"""
import logging
import threading
from enum import Enum

from pentair.support.events import EventSource
from pentair.support.mixins import StringerMixin, ValueObjectMixin

logger = logging.getLogger(__name__)


class ThingTypeUID(ValueObjectMixin):
    """ Identifies a kind of thing, such as a serial bridge or a pump. Compared by value. """

    def __init__(self, binding_id, id):
        self.binding_id = binding_id
        self.id = id

    def __str__(self):
        return '%s:%s' % (self.binding_id, self.id)

    def __repr__(self):
        return 'ThingTypeUID(%r, %r)' % (self.binding_id, self.id)


class Thing(StringerMixin):
    """
    A configured unit managed by the platform. The configuration is owned by the platform and
    only read here; it may be edited between connection attempts.
    """

    def __init__(self, uid, thing_type_uid: ThingTypeUID, configuration=None, label=None, bridge_uid=None):
        self.uid = uid
        self.thing_type_uid = thing_type_uid
        self.configuration = dict(configuration or {})
        self.label = label or uid
        self.bridge_uid = bridge_uid


class ThingStatus(Enum):
    UNKNOWN = 'UNKNOWN'
    ONLINE = 'ONLINE'
    OFFLINE = 'OFFLINE'


class ThingStatusDetail(Enum):
    NONE = 'NONE'
    CONFIGURATION_ERROR = 'CONFIGURATION_ERROR'
    COMMUNICATION_ERROR = 'COMMUNICATION_ERROR'
    BRIDGE_OFFLINE = 'BRIDGE_OFFLINE'


class ErrorCategory(Enum):
    """ Why a connection attempt failed. """
    CONFIGURATION = 'CONFIGURATION'
    RESOURCE_BUSY = 'RESOURCE_BUSY'
    UNSUPPORTED_OPERATION = 'UNSUPPORTED_OPERATION'
    IO = 'IO'


class ThingStatusInfo(ValueObjectMixin, StringerMixin):
    """ The status reported to the platform: online, offline, or offline with a detail and message. """

    def __init__(self, status: ThingStatus, detail=ThingStatusDetail.NONE, description=None, category=None):
        self.status = status
        self.detail = detail
        self.description = description
        self.category = category

    @property
    def online(self) -> bool:
        return self.status is ThingStatus.ONLINE


class ThingStatusEvent:
    """ Fired by a handler each time its status is updated. """

    def __init__(self, handler, status_info: ThingStatusInfo, previous: ThingStatusInfo):
        self.handler = handler
        self.status_info = status_info
        self.previous = previous


UNKNOWN = ThingStatusInfo(ThingStatus.UNKNOWN)


class BaseThingHandler:
    """
    Common base of bridge and device handlers. Keeps the thing and its status, and
    publishes status changes on `events`.
    """

    def __init__(self, thing: Thing):
        self.thing = thing
        self.events = EventSource()
        self._status_lock = threading.RLock()
        self._status_info = UNKNOWN

    @property
    def status_info(self) -> ThingStatusInfo:
        return self._status_info

    def update_status(self, status: ThingStatus, detail=ThingStatusDetail.NONE, description=None, category=None):
        info = ThingStatusInfo(status, detail, description, category)
        with self._status_lock:
            previous = self._status_info
            self._status_info = info
            if info != previous:
                logger.debug("%s status %s -> %s" % (self.thing.uid, previous.status.value, status.value))
            self.events.fire(ThingStatusEvent(self, info, previous))

    def initialize(self):
        raise NotImplementedError

    def dispose(self):
        pass
