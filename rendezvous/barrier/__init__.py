"""The barrier coordination engine: groups of expected participants, and the check-in/release cycle"""

from .engine import RELEASE_PAYLOAD, BarrierEngine
from .errors import (BarrierError, CheckInRejected, ConfigurationError, DuplicateArrival, UnknownGroup,
                     UnrecognizedParticipant, WaiterAlreadyReleased, WaiterClosed)
from .group import GroupRegistry, GroupState
from .keepalive import KeepAliveTicker
from .waiter import StreamingWaiter, Waiter
