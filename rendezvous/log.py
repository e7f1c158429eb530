import copy
import logging
from io import StringIO

logger = logging.getLogger(__name__)

logger.setLevel(logging.INFO)
logger.propagate = False # output goes only to the handlers below, even when a server configures the root logger
handler_stderr = logging.StreamHandler()
handler_stderr.setLevel(logging.INFO)
formatter = logging.Formatter("%(asctime)s : %(message)s")
handler_stderr.setFormatter(formatter)
logger.addHandler(handler_stderr)


class LogCapturer:
    """Temporarily divert the rendezvous log into a buffer, e.g. for checking messages in tests"""
    def __init__(self, level=logging.INFO):
        self.buffer = StringIO()
        self.handler_buffer = logging.StreamHandler(self.buffer)
        self.handler_buffer.setLevel(level)
        self._level = level
        self._previous_level = None
        self._suspended_handlers = []

    def __enter__(self):
        self._suspended_handlers = copy.copy(logger.handlers)
        for x_handler in self._suspended_handlers:
            logger.removeHandler(x_handler)
        logger.addHandler(self.handler_buffer)
        self._previous_level = logger.level
        logger.setLevel(min(self._level, self._previous_level))
        return self

    def __exit__(self, *exc_info):
        for x_handler in self._suspended_handlers:
            logger.addHandler(x_handler)
        self._suspended_handlers = []
        logger.removeHandler(self.handler_buffer)
        logger.setLevel(self._previous_level)

    def get_output(self):
        return self.buffer.getvalue()


def set_identity_string(identifier):
    global handler_stderr
    formatter = logging.Formatter(identifier+"%(asctime)s : %(message)s")
    handler_stderr.setFormatter(formatter)


def set_verbose(verbose=True):
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    handler_stderr.setLevel(level)
