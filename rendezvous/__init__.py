"""Rendezvous - a network barrier server

Processes on any number of hosts check in at a named group url with a short HTTP POST. The request is held open
until every participant expected in that group has checked in, at which point all of them are released together.

For information on getting started, see README.md.

"""

from . import barrier, log
from .barrier import BarrierEngine, GroupRegistry, KeepAliveTicker

__version__ = '1.0.0'
