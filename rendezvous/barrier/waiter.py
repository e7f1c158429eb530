"""Waiters represent one participant's held-open check-in.

The engine only ever talks to the abstract Waiter interface (ping, release, on_closed). StreamingWaiter
is the implementation used by the web layer: it is handed to the WSGI server as the response app_iter, so
the response body is produced lazily as the engine pings and finally releases it.
"""

import queue
import threading

from ..log import logger
from .errors import WaiterAlreadyReleased, WaiterClosed

LINE_ENDING = "\r\n"
PING_LINE = "HOLD"+LINE_ENDING

_END_OF_STREAM = None


class Waiter:
    """A handle on one held check-in. release() is terminal and may be called at most once."""

    def __init__(self):
        self._state_lock = threading.Lock()
        self._released = False
        self._closed = False
        self._closed_callbacks = []

    @property
    def released(self):
        return self._released

    @property
    def closed(self):
        return self._closed

    def ping(self):
        with self._state_lock:
            self._check_open()
            if self._released:
                return
            self._send_ping()

    def release(self, payload):
        with self._state_lock:
            if self._released:
                raise WaiterAlreadyReleased("Waiter %r has already been released" % self)
            self._check_open()
            self._released = True
            self._send_release(payload)

    def on_closed(self, callback):
        """Register callback() to run when the underlying connection is finished with.

        If the waiter is already closed, the callback runs straight away."""
        with self._state_lock:
            if not self._closed:
                self._closed_callbacks.append(callback)
                return
        callback()

    def close(self):
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            callbacks, self._closed_callbacks = self._closed_callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Error in close callback for %r", self)

    def _check_open(self):
        if self._closed:
            raise WaiterClosed("Waiter %r has been closed" % self)

    def _send_ping(self):
        raise NotImplementedError()

    def _send_release(self, payload):
        raise NotImplementedError()


class StreamingWaiter(Waiter):
    """A waiter that doubles as a WSGI app_iter, yielding one encoded line per ping and ending after release"""

    def __init__(self, label=None, encoding='utf-8'):
        super().__init__()
        self.label = label
        self.encoding = encoding
        self._lines = queue.Queue()

    def __repr__(self):
        return "<StreamingWaiter %s>" % (self.label or hex(id(self)))

    def _send_ping(self):
        self._lines.put(PING_LINE.encode(self.encoding))

    def _send_release(self, payload):
        self._lines.put((payload+LINE_ENDING).encode(self.encoding))
        self._lines.put(_END_OF_STREAM)

    def __iter__(self):
        return self

    def __next__(self):
        if self._closed:
            raise StopIteration
        line = self._lines.get()
        if line is _END_OF_STREAM:
            raise StopIteration
        return line

    def close(self):
        super().close()
        # unblock any thread still waiting in __next__
        self._lines.put(_END_OF_STREAM)
