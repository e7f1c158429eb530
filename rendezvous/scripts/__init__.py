import argparse
import os
import sys

from .. import config, log
from ..barrier import ConfigurationError
from . import checkin


def resolve_ini_path(ini_file):
    if os.path.exists(ini_file):
        return ini_file
    from .. import web
    return os.path.join(os.path.dirname(web.__file__), ini_file)


def load_groups_or_exit(path):
    try:
        return config.load_group_file(path)
    except ConfigurationError as e:
        print("Error: %s" % e, file=sys.stderr)
        sys.exit(1)


def listen_host(host):
    """Bracket an IPv6 literal so that waitress can tell it apart from the port in host:port"""
    if ":" in host and not host.startswith("["):
        return "[%s]" % host
    return host


def choose_thread_count(expected, requested=None):
    """Return the number of server threads to run, exiting if an explicitly requested count is too small"""
    if requested is None:
        return max(config.default_threads, config.required_threads(expected))
    try:
        config.check_thread_capacity(expected, requested)
    except ConfigurationError as e:
        print("Error: %s" % e, file=sys.stderr)
        sys.exit(1)
    return requested


def add_serve_tool(subparse):
    def serve(options):
        ini_path = resolve_ini_path(options.config)
        if not os.path.exists(ini_path):
            print("Error: cannot find server configuration %r" % options.config, file=sys.stderr)
            sys.exit(1)

        groups_path = os.path.abspath(options.groups)
        # validate up front so that a malformed groups file stops the server before it binds a port
        group_config = load_groups_or_exit(groups_path)

        if options.port is not None:
            port = int(options.port)
        elif group_config.port is not None:
            port = group_config.port
        else:
            port = config.default_port

        host = listen_host(options.host or group_config.hostname or config.default_host)

        threads = choose_thread_count(group_config.expected, options.threads)

        log.logger.info("Listening on %s:%d with %d threads", host, port, threads)

        sys.argv = ["", ini_path, f"port={port}", f"host={host}", f"groups={groups_path}",
                    f"threads={threads}", f"connections={threads+config.spare_connections}"]

        from importlib.metadata import entry_points

        # Find the 'pserve' entry point in the 'console_scripts' group
        pserve_entry_point = next(
            (ep for ep in entry_points(group='console_scripts') if ep.name == 'pserve'),
            None
        )
        if pserve_entry_point is None:
            raise RuntimeError("Could not find the 'pserve' entry point in 'console_scripts'.")

        sys.exit(pserve_entry_point.load()())

    serve_subparser = subparse.add_parser("serve", help="Start the barrier server (shortcut to Pyramid's pserve)")
    serve_subparser.add_argument('config', action='store', nargs="?",
                                 help="The name of the pserve configuration file; either a path or production.ini/development.ini to use the packaged configurations",
                                 default="production.ini")
    serve_subparser.add_argument('port', action='store', nargs="?",
                                 help="The port to listen on. If not specified, uses the port from the groups file, or %d." % config.default_port,
                                 default=None)
    serve_subparser.add_argument('--groups', '-g', action='store',
                                 help="The JSON file listing the participants of each group (default %s)" % config.groups_file,
                                 default=config.groups_file)
    serve_subparser.add_argument('--threads', action='store', type=int, default=None,
                                 help="The number of server threads. Each participant waiting at a barrier occupies one; by default %d, or more if the groups need it." % config.default_threads)
    serve_subparser.add_argument('--host', action='store',
                                 help="The interface to listen on. If not specified, uses the hostname from the groups file, or all interfaces.",
                                 default=None)
    serve_subparser.set_defaults(func=serve)


def add_checkin_tool(subparse):
    def run_checkin(options):
        try:
            checkin.checkin(options.url, options.id, timeout=options.timeout)
        except checkin.CheckInFailed as e:
            print("barrier: %s" % e, file=sys.stderr)
            sys.exit(1)

    checkin_subparser = subparse.add_parser("checkin",
                                            help="Check in at a barrier and wait until the whole group has arrived")
    checkin_subparser.add_argument('url', action='store',
                                   help="The url of the group, e.g. http://barrier-host:1337/deploy")
    checkin_subparser.add_argument('id', action='store',
                                   help="This participant's id, as listed in the server's groups file")
    checkin_subparser.add_argument('--timeout', action='store', type=float, default=None,
                                   help="Give up if nothing (not even a keep-alive) is heard from the server for this many seconds")
    checkin_subparser.set_defaults(func=run_checkin)


def add_check_config_tool(subparse):
    def check_config(options):
        group_config = load_groups_or_exit(options.groups)
        for name in sorted(group_config.expected):
            print("%s: %s" % (name, ", ".join(sorted(group_config.expected[name]))))
        if group_config.keepalive_interval is not None:
            print("keep-alive interval: %gs" % group_config.keepalive_interval)

    check_subparser = subparse.add_parser("check-config", help="Validate a groups file and list its groups")
    check_subparser.add_argument('groups', action='store', nargs="?", default=config.groups_file,
                                 help="The JSON groups file to check (default %s)" % config.groups_file)
    check_subparser.set_defaults(func=check_config)


def get_argument_parser_and_subparsers():
    parser = argparse.ArgumentParser(prog="rendezvous")
    parser.add_argument("--verbose", "-v", action='store_true', help="Switch on debug logging")
    subparse = parser.add_subparsers(required=True)
    return parser, subparse


def add_commands(subparse):
    add_serve_tool(subparse)
    add_checkin_tool(subparse)
    add_check_config_tool(subparse)


def main(argv=None):
    parser, subparse = get_argument_parser_and_subparsers()

    add_commands(subparse)

    args = parser.parse_args(argv)

    if args.verbose:
        log.set_verbose(True)
    args.func(args)
