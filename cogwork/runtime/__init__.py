"""
Runtime helpers shared by cog implementations.
"""

from cogwork.runtime.command_runner import CommandResult, CommandRunner

__all__ = ["CommandResult", "CommandRunner"]
