from .. import config as rendezvous_config


def includeme(config):
    config.add_route('status', rendezvous_config.status_path)
    # every other url is a potential group; unconfigured ones are rejected by the engine
    config.add_route('checkin', '/*subpath')
