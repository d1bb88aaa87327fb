"""
System cogs: pseudo-cogs that run nested scope invocations.
"""

from cogwork.system_cogs.base import IterationResults, ScopeInvocation, ScopeRunner, SystemCog
from cogwork.system_cogs.call import Call, CallInput, CallOutput
from cogwork.system_cogs.map import Map, MapConfig, MapInput, MapOutput
from cogwork.system_cogs.repeat import Repeat, RepeatInput, RepeatOutput

SYSTEM_COGS = (Call, Map, Repeat)

__all__ = [
    "SYSTEM_COGS",
    "IterationResults",
    "ScopeInvocation",
    "ScopeRunner",
    "SystemCog",
    "Call",
    "CallInput",
    "CallOutput",
    "Map",
    "MapConfig",
    "MapInput",
    "MapOutput",
    "Repeat",
    "RepeatInput",
    "RepeatOutput",
]
