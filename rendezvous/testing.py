"""Helpers for testing code that drives barrier waiters, without a real connection"""

from .barrier import Waiter, WaiterClosed


class RecordingWaiter(Waiter):
    """A waiter that remembers what was sent to it instead of writing to a connection"""
    def __init__(self, label=None, fail_on_send=False):
        super().__init__()
        self.label = label
        self.fail_on_send = fail_on_send
        self.pings = 0
        self.releases = []

    def __repr__(self):
        return "<RecordingWaiter %s>" % self.label

    def _send_ping(self):
        if self.fail_on_send:
            raise WaiterClosed("connection reset")
        self.pings += 1

    def _send_release(self, payload):
        if self.fail_on_send:
            raise WaiterClosed("connection reset")
        self.releases.append(payload)
