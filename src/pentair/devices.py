"""
Handlers for the equipment reached over a bridge. The decoding of each device's messages is
done by the protocol processor; these handlers track the configured bus address and follow
the status of their bridge.
"""
import logging

from configobj import ConfigObjError

from pentair.config.config import get_config_as
from pentair.thing import BaseThingHandler, ErrorCategory, Thing, ThingStatus, ThingStatusDetail, \
    ThingStatusEvent

logger = logging.getLogger(__name__)


class DeviceConfig:
    configspec = ['id = integer(min=0, max=255, default=0)']

    def __init__(self):
        self.id = 0


class BaseDeviceHandler(BaseThingHandler):
    """
    A leaf device on the bus. Online while its bridge is online.
    """
    default_id = 0

    def __init__(self, thing: Thing):
        super().__init__(thing)
        self.id = self.default_id
        self.bridge = None

    def set_bridge(self, bridge):
        """ attaches this device to the bridge handler that serves it. """
        if self.bridge is not None:
            self.bridge.events.remove(self._bridge_event)
        self.bridge = bridge
        if bridge is not None:
            bridge.events.add(self._bridge_event)

    def initialize(self):
        values = dict(self.thing.configuration)
        if values.get('id') is None:
            values['id'] = self.default_id
        try:
            self.id = get_config_as(values, DeviceConfig, str(self.thing.uid)).id
        except ConfigObjError as e:
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.CONFIGURATION_ERROR, str(e),
                               ErrorCategory.CONFIGURATION)
            return
        logger.debug("%s initialized with bus id %d" % (self.thing.uid, self.id))
        if self.bridge is None:
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.BRIDGE_OFFLINE, "no bridge")
        else:
            self.bridge_status_changed(self.bridge.status_info)

    def dispose(self):
        self.set_bridge(None)

    def _bridge_event(self, event: ThingStatusEvent):
        self.bridge_status_changed(event.status_info)

    def bridge_status_changed(self, bridge_status):
        if bridge_status.online:
            self.update_status(ThingStatus.ONLINE)
        else:
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.BRIDGE_OFFLINE)


class ControllerHandler(BaseDeviceHandler):
    """ The EasyTouch/IntelliTouch/SunTouch panel. """
    default_id = 16


class IntelliFloHandler(BaseDeviceHandler):
    """ IntelliFlo variable speed pump. """
    default_id = 96


class IntelliChlorHandler(BaseDeviceHandler):
    """ IntelliChlor salt chlorine generator. """
    default_id = 0


class IntelliChemHandler(BaseDeviceHandler):
    """ IntelliChem chemistry controller. """
    default_id = 144
