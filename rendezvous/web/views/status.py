from pyramid.view import view_config


@view_config(route_name='status', renderer='json', request_method='GET')
def status(request):
    return {'groups': request.barrier_engine.status()}
