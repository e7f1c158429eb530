"""Configuration module for rendezvous

Rather than change anything directly in this file, you can create a config_local.py with the variable you
want to override and it will automatically take precedence.

The barrier groups themselves are not defined here; they live in a strict-JSON groups file (see
barrier-server.sample.conf), which is read and validated by load_group_file.
"""

import json
import os

from .barrier.errors import ConfigurationError
from .log import logger

groups_file = os.environ.get("RENDEZVOUS_GROUPS_FILE", "./barrier-server.conf")
# the JSON file listing the participants expected at each group url

keepalive_interval = float(os.environ.get("RENDEZVOUS_KEEPALIVE_INTERVAL", 60.0))
# seconds between HOLD lines sent to every held participant; zero or less switches keep-alives off

default_port = 1337
default_host = "*"

default_threads = 64
# waitress worker threads; every held participant occupies one until its group is released

spare_connections = 100
# connections accepted beyond the thread count, e.g. for clients queued behind a busy server

status_path = "/_status.json"
# reserved url for the JSON status summary; cannot be used as a group name

known_file_keys = ("expected", "keepAliveIntervalMs", "hostname", "port")

try:
    from .config_local import *
except ImportError:
    pass


class GroupConfig:
    """Validated contents of a groups file"""
    def __init__(self, expected, keepalive_interval=None, hostname=None, port=None):
        self.expected = expected
        self.keepalive_interval = keepalive_interval
        self.hostname = hostname
        self.port = port

    def __repr__(self):
        return "<GroupConfig %d group(s): %s>" % (len(self.expected), ", ".join(sorted(self.expected)))


def load_group_file(path=None):
    """Read and validate the groups file at path (by default, config.groups_file)"""
    if path is None:
        path = groups_file
    try:
        with open(path, encoding='utf-8') as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigurationError("Unable to read groups file at %r: %s" % (path, e)) from e
    except ValueError as e:
        raise ConfigurationError("Groups file at %r is not valid JSON: %s" % (path, e)) from e
    return parse_group_config(raw, source=path)


def parse_group_config(raw, source="<config>"):
    """Validate a decoded groups file, returning a GroupConfig"""
    if not isinstance(raw, dict):
        raise ConfigurationError("%s: top level must be a JSON object" % source)

    for key in raw:
        if key not in known_file_keys:
            logger.warning("%s: ignoring unknown configuration key %r", source, key)

    expected = parse_expected(raw.get("expected"), source)

    interval = raw.get("keepAliveIntervalMs")
    if interval is not None:
        if isinstance(interval, bool) or not isinstance(interval, (int, float)):
            raise ConfigurationError("%s: keepAliveIntervalMs must be a number" % source)
        interval = interval/1000.0

    hostname = raw.get("hostname")
    if hostname is not None and not isinstance(hostname, str):
        raise ConfigurationError("%s: hostname must be a string or null" % source)

    port = raw.get("port")
    if port is not None:
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise ConfigurationError("%s: port must be an integer between 1 and 65535" % source)

    return GroupConfig(expected, interval, hostname, port)


def parse_expected(expected, source="<config>"):
    """Validate a mapping of group url -> list of participant ids, returning url -> frozenset"""
    if not isinstance(expected, dict) or len(expected)==0:
        raise ConfigurationError("%s: 'expected' must be a non-empty object mapping group urls to id lists" % source)

    result = {}
    for name, ids in expected.items():
        if not isinstance(name, str) or not name.startswith("/"):
            raise ConfigurationError("%s: group name %r must be a url path starting with '/'" % (source, name))
        if name == status_path:
            raise ConfigurationError("%s: group name %r is reserved" % (source, name))
        if not isinstance(ids, (list, tuple)) or len(ids)==0:
            raise ConfigurationError("%s: group %r must list at least one participant id" % (source, name))
        if not all(isinstance(i, str) and i for i in ids):
            raise ConfigurationError("%s: participant ids for group %r must be non-empty strings" % (source, name))
        id_set = frozenset(ids)
        if len(id_set) != len(ids):
            logger.warning("%s: group %r lists some participant ids more than once", source, name)
        result[name] = id_set
    return result


def required_threads(expected):
    """Worker threads needed to hold every participant of every group at once, plus one spare for the
    check-in that completes a round, rejections and the status page"""
    return sum(len(ids) for ids in expected.values()) + 1


def check_thread_capacity(expected, threads):
    needed = required_threads(expected)
    if threads < needed:
        raise ConfigurationError("%d server thread(s) cannot hold the %d participant(s) configured across all groups; "
                                 "at least %d are needed" % (threads, needed-1, needed))
