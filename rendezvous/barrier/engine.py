import functools

from ..log import logger
from .errors import DuplicateArrival, UnrecognizedParticipant

RELEASE_PAYLOAD = "GO"


class BarrierEngine:
    """Tracks arrivals in every group of a registry and releases each group once all its participants arrive.

    Check-ins never block: the engine records the waiter and returns. Waiters are driven later, either by
    the check-in that completes the round or by the keep-alive ticker."""

    def __init__(self, registry, release_payload=RELEASE_PAYLOAD):
        self.registry = registry
        self.release_payload = release_payload

    def check_in(self, group_name, participant_id, waiter):
        """Record the arrival of participant_id at group_name, to be held by waiter.

        Returns the number of participants still awaited in this round; zero means this arrival completed
        the round and every held waiter (including this one) has been released.

        Raises UnknownGroup, UnrecognizedParticipant or DuplicateArrival without changing any state."""
        group = self.registry.lookup(group_name)

        with group.lock:
            if participant_id not in group.expected:
                raise UnrecognizedParticipant(group_name, participant_id)
            if participant_id in group.arrived:
                raise DuplicateArrival(group_name, participant_id)

            group.arrived[participant_id] = waiter
            remaining = len(group.expected) - len(group.arrived)

            if remaining == 0:
                # detach the completed round; later check-ins see only the fresh, empty map
                to_release = group.arrived
                group.arrived = {}
                group.rounds_completed += 1
                round_number = group.rounds_completed
            else:
                to_release = None

        if to_release is None:
            logger.debug("Group %r: %r checked in, waiting for %d more", group_name, participant_id, remaining)
            waiter.on_closed(functools.partial(self._connection_closed, group, participant_id, waiter))
        else:
            logger.info("Group %r: %r completed round %d, releasing %d participant(s)",
                        group_name, participant_id, round_number, len(to_release))
            failures = self._release_all(group, to_release)
            if failures:
                logger.warning("Group %r: %d of %d participant(s) in round %d could not be released",
                               group_name, failures, len(to_release), round_number)

        return remaining

    def _release_all(self, group, waiters):
        failures = 0
        for participant_id, waiter in waiters.items():
            try:
                waiter.release(self.release_payload)
            except Exception as e:
                failures += 1
                logger.warning("Group %r: could not release %r (%s)", group.name, participant_id, e)
        return failures

    def _connection_closed(self, group, participant_id, waiter):
        if group.withdraw(participant_id, waiter):
            logger.info("Group %r: connection for %r closed before release; it must check in again",
                        group.name, participant_id)

    def status(self):
        """Return a JSON-serialisable summary of every group"""
        result = {}
        for group in self.registry:
            with group.lock:
                arrived = sorted(group.arrived)
                rounds = group.rounds_completed
            result[group.name] = {'expected': sorted(group.expected),
                                  'arrived': arrived,
                                  'waiting_for': sorted(group.expected.difference(arrived)),
                                  'rounds_completed': rounds}
        return result
