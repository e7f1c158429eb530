from pyramid.response import Response
from pyramid.view import view_config
import pyramid.httpexceptions as exc

from ...barrier import DuplicateArrival, StreamingWaiter, UnknownGroup, UnrecognizedParticipant
from ...log import logger
from . import plain_error


def group_from_request(request):
    group_name = request.path_info
    try:
        request.barrier_engine.registry.lookup(group_name)
    except UnknownGroup:
        raise plain_error(exc.HTTPNotFound, 'Unknown group: "%s"' % group_name)
    return group_name


@view_config(route_name='checkin', request_method='POST')
def checkin(request):
    group_name = group_from_request(request)

    participant_id = request.POST.get('id')
    if not participant_id:
        raise plain_error(exc.HTTPBadRequest, 'Missing id')

    waiter = StreamingWaiter(label="%s#%s" % (group_name, participant_id))
    try:
        request.barrier_engine.check_in(group_name, participant_id, waiter)
    except UnrecognizedParticipant:
        logger.info("Group %r: rejected unrecognized id %r from %s", group_name, participant_id,
                    request.client_addr)
        raise plain_error(exc.HTTPBadRequest, 'Unrecognized id: "%s"' % participant_id)
    except DuplicateArrival:
        logger.info("Group %r: rejected duplicate id %r from %s", group_name, participant_id,
                    request.client_addr)
        raise plain_error(exc.HTTPBadRequest, 'Duplicate id: "%s"' % participant_id)

    # the body is streamed from the waiter, so the server holds the connection open until release
    return Response(app_iter=waiter, content_type='text/plain')


@view_config(route_name='checkin')
def checkin_wrong_method(request):
    raise plain_error(exc.HTTPMethodNotAllowed, 'Check in with a POST request', headers={'Allow': 'POST'})
