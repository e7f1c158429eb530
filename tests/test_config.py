import json

import pytest

from rendezvous import config, log
from rendezvous.barrier import ConfigurationError


def _write(tmp_path, contents):
    path = tmp_path/"barrier-server.conf"
    if isinstance(contents, str):
        path.write_text(contents)
    else:
        path.write_text(json.dumps(contents))
    return str(path)


def test_load_full_file(tmp_path):
    path = _write(tmp_path, {"expected": {"/": ["h1", "h2"], "/deploy": ["web1"]},
                             "keepAliveIntervalMs": 15000, "hostname": "127.0.0.1", "port": 8080})
    group_config = config.load_group_file(path)
    assert group_config.expected == {"/": frozenset(["h1", "h2"]), "/deploy": frozenset(["web1"])}
    assert group_config.keepalive_interval == 15.0
    assert group_config.hostname == "127.0.0.1"
    assert group_config.port == 8080


def test_optional_keys_default_to_none(tmp_path):
    group_config = config.load_group_file(_write(tmp_path, {"expected": {"/": ["h1"]}}))
    assert group_config.keepalive_interval is None
    assert group_config.hostname is None
    assert group_config.port is None


def test_misspelt_keepalive_key_is_not_used(tmp_path):
    with log.LogCapturer() as lc:
        group_config = config.load_group_file(_write(tmp_path, {"expected": {"/": ["h1"]},
                                                                "keepaliveIntervalMs": 5}))
    assert group_config.keepalive_interval is None
    assert "keepaliveIntervalMs" in lc.get_output()


def test_duplicate_ids_warn(tmp_path):
    with log.LogCapturer() as lc:
        group_config = config.load_group_file(_write(tmp_path, {"expected": {"/": ["h1", "h1", "h2"]}}))
    assert group_config.expected["/"] == frozenset(["h1", "h2"])
    assert "more than once" in lc.get_output()


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        config.load_group_file(str(tmp_path/"does-not-exist.conf"))


@pytest.mark.parametrize("contents", [
    '{"expected": {"/": ["h1"]}',
    [1, 2, 3],
    {},
    {"expected": {}},
    {"expected": {"/": []}},
    {"expected": {"no-slash": ["h1"]}},
    {"expected": {"/_status.json": ["h1"]}},
    {"expected": {"/": "h1"}},
    {"expected": {"/": ["h1", 2]}},
    {"expected": {"/": [""]}},
    {"expected": {"/": ["h1"]}, "keepAliveIntervalMs": "often"},
    {"expected": {"/": ["h1"]}, "port": 70000},
    {"expected": {"/": ["h1"]}, "port": True},
    {"expected": {"/": ["h1"]}, "hostname": 12},
])
def test_malformed_files(tmp_path, contents):
    with pytest.raises(ConfigurationError):
        config.load_group_file(_write(tmp_path, contents))


def test_parse_expected_accepts_tuples():
    assert config.parse_expected({"/a": ("x", "y")}) == {"/a": frozenset(["x", "y"])}


def test_required_threads():
    expected = config.parse_expected({"/big": ["p0", "p1", "p2"], "/other": ["o"]})
    assert config.required_threads(expected) == 5
    config.check_thread_capacity(expected, 5)
    with pytest.raises(ConfigurationError, match="at least 5"):
        config.check_thread_capacity(expected, 2)
