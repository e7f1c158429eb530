import threading

from .errors import ConfigurationError, UnknownGroup


class GroupState:
    """The expected participants of one barrier group, and the waiters held for the current round.

    All reads and writes of ``arrived`` go through ``lock``; each group has its own lock so that activity
    in one group never contends with another."""

    def __init__(self, name, expected):
        expected = frozenset(expected)
        if len(expected)==0:
            raise ConfigurationError("Group %r must expect at least one participant" % name)
        self.name = name
        self.expected = expected
        self.arrived = {}
        self.rounds_completed = 0
        self.lock = threading.Lock()

    def __repr__(self):
        return "<GroupState %r (%d/%d arrived)>" % (self.name, len(self.arrived), len(self.expected))

    def snapshot(self):
        """Return a list of (participant_id, waiter) currently held, safe to iterate without the lock"""
        with self.lock:
            return list(self.arrived.items())

    def arrived_ids(self):
        with self.lock:
            return set(self.arrived)

    def withdraw(self, participant_id, waiter):
        """Forget the arrival of participant_id, provided it is still held by this exact waiter.

        Returns True if an entry was removed."""
        with self.lock:
            if self.arrived.get(participant_id) is waiter:
                del self.arrived[participant_id]
                return True
            return False


class GroupRegistry:
    """All configured groups, keyed by name. Groups are registered at startup and never removed."""

    def __init__(self):
        self._groups = {}

    @classmethod
    def from_config(cls, expected):
        """Build a registry from a mapping of group name -> iterable of participant ids"""
        registry = cls()
        for name, ids in expected.items():
            registry.register_group(name, ids)
        return registry

    def register_group(self, name, expected_ids):
        if name in self._groups:
            raise ConfigurationError("Group %r is already registered" % name)
        group = GroupState(name, expected_ids)
        self._groups[name] = group
        return group

    def lookup(self, name):
        try:
            return self._groups[name]
        except KeyError:
            raise UnknownGroup(name) from None

    def names(self):
        return sorted(self._groups)

    def __iter__(self):
        return iter(list(self._groups.values()))

    def __len__(self):
        return len(self._groups)

    def __contains__(self, name):
        return name in self._groups
