import threading

from ..log import logger


class KeepAliveTicker:
    """Periodically pings every held waiter, so that idle connections are not dropped by the network.

    The ticker never changes barrier state; it works from a snapshot of each group, so a waiter that arrives
    or is released mid-tick may simply be missed until the next one."""

    def __init__(self, registry, interval):
        self.registry = registry
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def enabled(self):
        return self.interval is not None and self.interval > 0

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def tick(self):
        """Ping all held waiters once, returning the number of successful pings"""
        num_pinged = 0
        for group in self.registry:
            for participant_id, waiter in group.snapshot():
                try:
                    waiter.ping()
                    num_pinged += 1
                except Exception as e:
                    logger.debug("Group %r: keep-alive to %r failed (%s)", group.name, participant_id, e)
        return num_pinged

    def _run(self):
        while not self._stop_event.wait(self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Unexpected error in keep-alive ticker")

    def start(self):
        if not self.enabled:
            logger.info("Keep-alive pings are disabled")
            return
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="rendezvous-keepalive")
        self._thread.daemon = True
        self._thread.start()
        logger.info("Sending keep-alive pings every %.1fs", self.interval)

    def stop(self):
        if self._thread is not None:
            self._stop_event.set()
            self._thread.join()
            self._thread = None
