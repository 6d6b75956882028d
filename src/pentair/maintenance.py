"""
Keeps bridges connected. The hosting platform calls maintain() at regular intervals;
bridges that are not online are reconnected once their retry strategy allows it.
"""
import logging
import time

from pentair.bridge.base import BaseBridgeHandler
from pentair.support.retry_strategy import PeriodRetryStrategy, RetryStrategy

logger = logging.getLogger(__name__)


class MaintainedBridge:
    """
    Attempts to keep one bridge online.

    :param bridge: the bridge to reconnect when it is offline
    :param retry_strategy: says how long until the next connect attempt
    """

    def __init__(self, bridge: BaseBridgeHandler, retry_strategy: RetryStrategy, log=logger):
        self.bridge = bridge
        self.retry_strategy = retry_strategy
        self.logger = log

    def maintain(self, current_time=None):
        """
        :return: True if a connect was attempted
        """
        if self.bridge.online:
            return False
        if self.retry_strategy(current_time) > 0:
            return False
        if self.bridge.connect():
            self.logger.info("bridge connected: %s" % self.bridge.thing.uid)
        else:
            self.logger.debug("bridge %s still offline: %s" %
                              (self.bridge.thing.uid, self.bridge.status_info.description))
        return True


class BridgeMaintainer:
    """
    Maintains a set of bridges, each with its own retry period.
    """

    def __init__(self, retry_period=60):
        self.retry_period = retry_period
        self._bridges = {}      # thing uid -> MaintainedBridge

    def add(self, bridge: BaseBridgeHandler):
        uid = bridge.thing.uid
        previous = self._bridges.get(uid)
        if previous is not None and previous.bridge is bridge:
            return previous
        maintained = self._bridges[uid] = MaintainedBridge(bridge, PeriodRetryStrategy(self.retry_period))
        return maintained

    def remove(self, bridge: BaseBridgeHandler):
        """ stops maintaining the bridge and disconnects it. """
        maintained = self._bridges.pop(bridge.thing.uid, None)
        if maintained is not None:
            maintained.bridge.disconnect()

    @property
    def bridges(self):
        return dict(self._bridges)

    def maintain(self, current_time=time.time):
        now = current_time()
        for maintained in list(self._bridges.values()):
            try:
                maintained.maintain(now)
            except Exception as e:
                logger.exception("unexpected exception '%s' on '%s', disconnecting." %
                                 (e, maintained.bridge.thing.uid))
                maintained.bridge.disconnect()
