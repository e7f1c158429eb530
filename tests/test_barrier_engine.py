import threading

import pytest

from rendezvous import log
from rendezvous.barrier import (BarrierEngine, ConfigurationError, DuplicateArrival, GroupRegistry, UnknownGroup,
                                UnrecognizedParticipant)
from rendezvous.testing import RecordingWaiter


@pytest.fixture
def engine():
    registry = GroupRegistry.from_config({"/main": ["h1", "h2"], "/other": ["a", "b", "c"]})
    return BarrierEngine(registry)


def _arrived(engine, group="/main"):
    return engine.registry.lookup(group).arrived_ids()


def test_first_arrival_is_held(engine):
    w1 = RecordingWaiter("h1")
    assert engine.check_in("/main", "h1", w1) == 1
    assert w1.releases == []
    assert _arrived(engine) == {"h1"}


def test_last_arrival_releases_everyone(engine):
    w1, w2 = RecordingWaiter("h1"), RecordingWaiter("h2")
    engine.check_in("/main", "h1", w1)
    with log.LogCapturer() as lc:
        assert engine.check_in("/main", "h2", w2) == 0
    assert w1.releases == ["GO"]
    assert w2.releases == ["GO"]
    assert _arrived(engine) == set()
    assert "completed round 1" in lc.get_output()


def test_new_round_after_release(engine):
    engine.check_in("/main", "h1", RecordingWaiter())
    engine.check_in("/main", "h2", RecordingWaiter())

    w1 = RecordingWaiter("h1 again")
    assert engine.check_in("/main", "h1", w1) == 1
    assert w1.releases == []
    assert _arrived(engine) == {"h1"}


def test_many_rounds(engine):
    for round_number in range(1, 21):
        waiters = [RecordingWaiter(i) for i in ("h2", "h1")]
        engine.check_in("/main", "h2", waiters[0])
        engine.check_in("/main", "h1", waiters[1])
        assert all(w.releases == ["GO"] for w in waiters)
        assert _arrived(engine) == set()
        assert engine.registry.lookup("/main").rounds_completed == round_number


def test_unrecognized_participant(engine):
    w1 = RecordingWaiter("h1")
    engine.check_in("/main", "h1", w1)
    with log.LogCapturer():
        with pytest.raises(UnrecognizedParticipant):
            engine.check_in("/main", "h3", RecordingWaiter("h3"))
    assert _arrived(engine) == {"h1"}
    assert w1.releases == []


def test_participant_of_another_group_is_unrecognized(engine):
    with pytest.raises(UnrecognizedParticipant):
        engine.check_in("/main", "a", RecordingWaiter())
    assert _arrived(engine) == set()


def test_duplicate_arrival(engine):
    first, second = RecordingWaiter("first"), RecordingWaiter("second")
    engine.check_in("/main", "h1", first)
    with pytest.raises(DuplicateArrival):
        engine.check_in("/main", "h1", second)

    assert engine.registry.lookup("/main").arrived["h1"] is first

    engine.check_in("/main", "h2", RecordingWaiter("h2"))
    assert first.releases == ["GO"]
    assert second.releases == []


def test_unknown_group(engine):
    with pytest.raises(UnknownGroup):
        engine.check_in("/nonexistent", "h1", RecordingWaiter())


def test_rejections_share_a_base_class(engine):
    from rendezvous.barrier import CheckInRejected
    for group, pid in (("/nonexistent", "h1"), ("/main", "h3")):
        with pytest.raises(CheckInRejected):
            engine.check_in(group, pid, RecordingWaiter())


def test_failed_release_does_not_stop_others():
    registry = GroupRegistry.from_config({"/main": ["h1", "h2", "h3"]})
    engine = BarrierEngine(registry)
    dead = RecordingWaiter("dead", fail_on_send=True)
    w2, w3 = RecordingWaiter("h2"), RecordingWaiter("h3")

    engine.check_in("/main", "h1", dead)
    engine.check_in("/main", "h2", w2)
    with log.LogCapturer() as lc:
        assert engine.check_in("/main", "h3", w3) == 0

    assert w2.releases == ["GO"]
    assert w3.releases == ["GO"]
    assert registry.lookup("/main").arrived_ids() == set()
    assert "could not release 'h1'" in lc.get_output()
    assert "1 of 3 participant(s) in round 1 could not be released" in lc.get_output()


def test_closed_connection_is_withdrawn(engine):
    w1 = RecordingWaiter("h1")
    engine.check_in("/main", "h1", w1)
    with log.LogCapturer():
        w1.close()
    assert _arrived(engine) == set()

    # the participant can now come back in the same round
    w1_again, w2 = RecordingWaiter("h1"), RecordingWaiter("h2")
    engine.check_in("/main", "h1", w1_again)
    engine.check_in("/main", "h2", w2)
    assert w1_again.releases == ["GO"]
    assert w1.releases == []


def test_close_after_release_leaves_next_round_alone(engine):
    w1 = RecordingWaiter("h1")
    engine.check_in("/main", "h1", w1)
    engine.check_in("/main", "h2", RecordingWaiter("h2"))

    next_round = RecordingWaiter("h1 next")
    engine.check_in("/main", "h1", next_round)
    w1.close()
    assert engine.registry.lookup("/main").arrived["h1"] is next_round


def test_groups_are_independent(engine):
    engine.check_in("/other", "a", RecordingWaiter())
    engine.check_in("/main", "h1", RecordingWaiter())
    engine.check_in("/main", "h2", RecordingWaiter())
    assert _arrived(engine, "/other") == {"a"}
    assert engine.registry.lookup("/other").rounds_completed == 0


def test_status(engine):
    engine.check_in("/other", "b", RecordingWaiter())
    status = engine.status()
    assert status["/other"] == {'expected': ["a", "b", "c"], 'arrived': ["b"],
                                'waiting_for': ["a", "c"], 'rounds_completed': 0}
    assert status["/main"]['arrived'] == []


def test_registry_rejects_bad_groups():
    registry = GroupRegistry()
    registry.register_group("/main", ["h1"])
    with pytest.raises(ConfigurationError):
        registry.register_group("/main", ["h2"])
    with pytest.raises(ConfigurationError):
        registry.register_group("/empty", [])
    assert registry.names() == ["/main"]
    assert "/main" in registry
    assert len(registry) == 1


def _concurrent_check_ins(engine, group, ids, repeats=1):
    """Check in every (id, repeat) from its own thread, all starting together; return waiters and errors"""
    start = threading.Barrier(len(ids)*repeats)
    waiters = {}
    errors = []
    errors_lock = threading.Lock()

    def worker(pid, n):
        waiter = RecordingWaiter(pid)
        waiters[(pid, n)] = waiter
        start.wait()
        try:
            engine.check_in(group, pid, waiter)
        except DuplicateArrival as e:
            with errors_lock:
                errors.append(e)

    threads = [threading.Thread(target=worker, args=(pid, n)) for pid in ids for n in range(repeats)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return waiters, errors


def test_concurrent_distinct_arrivals_release_exactly_once():
    ids = ["p%d" % i for i in range(16)]
    registry = GroupRegistry.from_config({"/many": ids})
    engine = BarrierEngine(registry)

    with log.LogCapturer():
        for _ in range(10):
            waiters, errors = _concurrent_check_ins(engine, "/many", ids)
            assert errors == []
            assert all(w.releases == ["GO"] for w in waiters.values())
            assert registry.lookup("/many").arrived_ids() == set()

    assert registry.lookup("/many").rounds_completed == 10


def test_concurrent_same_id_single_success():
    registry = GroupRegistry.from_config({"/main": ["h1", "h2"]})
    engine = BarrierEngine(registry)

    waiters, errors = _concurrent_check_ins(engine, "/main", ["h1"], repeats=8)
    assert len(errors) == 7
    assert registry.lookup("/main").arrived_ids() == {"h1"}
    held = registry.lookup("/main").arrived["h1"]
    assert sum(1 for w in waiters.values() if w is held) == 1


def test_arrived_never_exceeds_expected():
    ids = ["p%d" % i for i in range(4)]
    registry = GroupRegistry.from_config({"/g": ids})
    engine = BarrierEngine(registry)
    group = registry.lookup("/g")

    sizes = []
    stop = threading.Event()

    def observe():
        while not stop.is_set():
            sizes.append(len(group.snapshot()))

    observer = threading.Thread(target=observe)
    observer.start()
    try:
        with log.LogCapturer():
            for _ in range(20):
                _concurrent_check_ins(engine, "/g", ids, repeats=2)
    finally:
        stop.set()
        observer.join()

    assert max(sizes) <= len(ids)
