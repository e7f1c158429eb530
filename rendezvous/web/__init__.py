from pyramid.config import Configurator


def main(global_config, **settings):
    """ This function returns a Pyramid WSGI application.
    """
    config = Configurator(settings=settings)
    config.include('.barrier')
    config.include('.routes')
    config.scan()

    app = config.make_wsgi_app()

    config.registry['keepalive_ticker'].start()

    return app
