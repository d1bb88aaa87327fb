"""
Cog abstractions: lifecycle, config, input, output, registry and store.
"""

from cogwork.cog.base import Cog, CogState, InputProc
from cogwork.cog.config import CogConfig
from cogwork.cog.input import CogInput
from cogwork.cog.output import CogOutput, WithJson, WithNumber, WithText
from cogwork.cog.registry import CogRegistry
from cogwork.cog.store import CogStore

__all__ = [
    "Cog",
    "CogState",
    "InputProc",
    "CogConfig",
    "CogInput",
    "CogOutput",
    "WithJson",
    "WithNumber",
    "WithText",
    "CogRegistry",
    "CogStore",
]
