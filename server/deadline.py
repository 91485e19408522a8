"""
Deadline shared by every blocking call of one login attempt.

The Okta push poll and the Duo status poll have no upper bound of their
own, so each sleep and each request goes through a Deadline.
"""

import time

from errors import LoginTimeoutError


class Deadline:
    def __init__(self, seconds=None, clock=time.monotonic, sleeper=time.sleep):
        """
        Args:
            seconds: total budget for the attempt, None for no limit
            clock: monotonic clock, injectable for tests
            sleeper: sleep function, injectable for tests
        """
        self._clock = clock
        self._sleep = sleeper
        self.seconds = seconds
        self.expires_at = None if seconds is None else clock() + seconds

    def remaining(self):
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - self._clock())

    def expired(self):
        return self.expires_at is not None and self._clock() >= self.expires_at

    def check(self, operation):
        if self.expired():
            raise LoginTimeoutError(
                f'login deadline of {self.seconds}s exceeded while {operation}')

    def timeout(self, default):
        """Per-request timeout, clipped to whatever is left of the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)

    def sleep(self, seconds, operation='waiting'):
        self.check(operation)
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        if seconds > 0:
            self._sleep(seconds)
        self.check(operation)
