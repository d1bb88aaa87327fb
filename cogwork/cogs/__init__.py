"""
Built-in cog implementations.
"""

from cogwork.cogs.agent import AgentCog, AgentConfig, AgentInput, AgentOutput
from cogwork.cogs.chat import ChatCog, ChatConfig, ChatInput, ChatOutput, ChatSession
from cogwork.cogs.cmd import CmdCog, CmdConfig, CmdInput, CmdOutput
from cogwork.cogs.python import PythonCog, PythonInput, PythonOutput, ValueKind

BUILTIN_COGS = (PythonCog, CmdCog, ChatCog, AgentCog)

__all__ = [
    "BUILTIN_COGS",
    "AgentCog",
    "AgentConfig",
    "AgentInput",
    "AgentOutput",
    "ChatCog",
    "ChatConfig",
    "ChatInput",
    "ChatOutput",
    "ChatSession",
    "CmdCog",
    "CmdConfig",
    "CmdInput",
    "CmdOutput",
    "PythonCog",
    "PythonInput",
    "PythonOutput",
    "ValueKind",
]
