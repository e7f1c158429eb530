"""Client side of the barrier: check in at a group url and wait for the release"""

import urllib.error
import urllib.parse
import urllib.request

from ..barrier.engine import RELEASE_PAYLOAD
from ..barrier.waiter import PING_LINE
from ..log import logger

_PING = PING_LINE.strip()


class CheckInFailed(Exception):
    pass


def checkin(url, participant_id, timeout=None, opener=urllib.request.urlopen):
    """POST participant_id to the group at url, returning once the server releases the group.

    Keep-alive lines are skipped. Raises CheckInFailed if the server refuses the check-in or the connection
    ends before the release arrives."""
    data = urllib.parse.urlencode({'id': participant_id}).encode('ascii')
    request = urllib.request.Request(url, data=data, method='POST')

    try:
        with opener(request, timeout=timeout) as response:
            for raw_line in response:
                line = raw_line.decode('utf-8', 'replace').strip()
                if line == RELEASE_PAYLOAD:
                    logger.debug("Released from %s", url)
                    return
                elif line == _PING:
                    logger.debug("Still waiting at %s", url)
                elif line:
                    raise CheckInFailed("unexpected response from server: %r" % line)
    except urllib.error.HTTPError as e:
        message = e.read().decode('utf-8', 'replace').strip() or e.reason
        raise CheckInFailed("server refused check-in (%d): %s" % (e.code, message)) from e
    except (urllib.error.URLError, OSError) as e:
        raise CheckInFailed("connection to %s failed: %s" % (url, e)) from e

    raise CheckInFailed("connection to %s closed before the group was released" % url)
