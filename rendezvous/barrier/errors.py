class BarrierError(Exception):
    """Base class for errors raised by the barrier engine"""
    pass


class CheckInRejected(BarrierError):
    """A check-in that the engine refused; the barrier state is left untouched"""
    pass


class UnknownGroup(CheckInRejected):
    def __init__(self, group_name):
        self.group_name = group_name
        super().__init__("Unknown group: %r" % (group_name,))


class UnrecognizedParticipant(CheckInRejected):
    def __init__(self, group_name, participant_id):
        self.group_name = group_name
        self.participant_id = participant_id
        super().__init__("Unrecognized id %r for group %r" % (participant_id, group_name))


class DuplicateArrival(CheckInRejected):
    def __init__(self, group_name, participant_id):
        self.group_name = group_name
        self.participant_id = participant_id
        super().__init__("Duplicate id %r for group %r" % (participant_id, group_name))


class WaiterClosed(BarrierError):
    """Raised when sending to a waiter whose connection has already gone away"""
    pass


class WaiterAlreadyReleased(BarrierError):
    """Raised when release is called a second time on the same waiter"""
    pass


class ConfigurationError(BarrierError):
    """Malformed group configuration; fatal at startup"""
    pass
