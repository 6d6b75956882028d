import time


class RetryStrategy:
    """ Retries immediately, every time. """

    def __call__(self, current_time=None, dry_run=False):
        return 0


class PeriodRetryStrategy(RetryStrategy):
    """
    Allows one try per retry period.
    """

    def __init__(self, retry_period, last_tried=None):
        """
        :param retry_period: The retry period in seconds.
        :param last_tried: The time of the previous try, or None if never tried.
        """
        self.retry_period = retry_period
        self.last_tried = last_tried

    def __call__(self, current_time=None, dry_run=False):
        """
        :return: the number of seconds until the next try. Zero or less means try now.
        :param dry_run: when True, the last tried time is not updated
        """
        if current_time is None:
            current_time = time.time()
        result = self._time_to_retry(current_time)
        if not dry_run and result <= 0:
            self.last_tried = current_time
        return result

    def _time_to_retry(self, current_time):
        return 0 if self.last_tried is None else self.retry_period - (current_time - self.last_tried)

    def reset(self):
        """ forgets the previous try so the next call allows an immediate retry. """
        self.last_tried = None
