from pyramid.settings import asbool

from .. import config as rendezvous_config
from ..barrier import BarrierEngine, ConfigurationError, GroupRegistry, KeepAliveTicker
from ..log import logger, set_verbose


def get_group_config(settings):
    """Work out the groups and keep-alive interval from the application settings.

    Groups may be given directly as a mapping under ``rendezvous.groups``, otherwise they are read from the
    file named by ``rendezvous.groups_file``."""

    interval = settings.get('rendezvous.keepalive_interval', rendezvous_config.keepalive_interval)
    try:
        interval = float(interval)
    except (TypeError, ValueError):
        raise ConfigurationError("rendezvous.keepalive_interval must be a number, not %r" % interval) from None

    groups = settings.get('rendezvous.groups')
    if groups is not None:
        expected = rendezvous_config.parse_expected(groups, source="rendezvous.groups")
    else:
        group_file = settings.get('rendezvous.groups_file') or rendezvous_config.groups_file
        group_config = rendezvous_config.load_group_file(group_file)
        expected = group_config.expected
        if group_config.keepalive_interval is not None:
            interval = group_config.keepalive_interval

    return expected, interval


def includeme(config):
    """
    Set up the barrier engine and keep-alive ticker for a Pyramid app.

    If ``rendezvous.threads`` is set, it must match the server's worker thread count; startup fails when there
    are too few threads to hold every configured participant at once.

    Activate this setup using ``config.include('rendezvous.web.barrier')``.

    """
    settings = config.get_settings()

    if asbool(settings.get('rendezvous.verbose', False)):
        set_verbose(True)

    expected, interval = get_group_config(settings)

    threads = settings.get('rendezvous.threads')
    if threads is not None:
        try:
            threads = int(threads)
        except (TypeError, ValueError):
            raise ConfigurationError("rendezvous.threads must be an integer, not %r" % threads) from None
        rendezvous_config.check_thread_capacity(expected, threads)

    registry = GroupRegistry.from_config(expected)
    engine = BarrierEngine(registry)
    ticker = KeepAliveTicker(registry, interval)

    for name in registry.names():
        logger.info("Group %r expects %d participant(s)", name, len(registry.lookup(name).expected))

    config.registry['barrier_engine'] = engine
    config.registry['keepalive_ticker'] = ticker

    config.add_request_method(lambda r: r.registry['barrier_engine'], 'barrier_engine', reify=True)
