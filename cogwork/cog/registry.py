"""
CogRegistry - maps cog type names to implementations.

The registry is built once per workflow and injected into every
ExecutionManager; there is no process-wide registry.
"""

import re

from cogwork.cog.base import Cog
from cogwork.errors import IllegalCogNameError, UnknownCogTypeError

# Type names that would shadow the declaration API
RESERVED_TYPE_NAMES = frozenset({"cog", "outputs", "outputs_strict", "global"})

_TYPE_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


class CogRegistry:
    """
    Registry of cog types.

    Examples:
        >>> registry = CogRegistry.default()
        >>> registry.register(MyCog)
        >>> registry.get("my_cog")
    """

    def __init__(self):
        self._types: dict[str, type[Cog]] = {}

    def register(self, cog_class: type[Cog]) -> None:
        """
        Register a cog implementation.

        Raises:
            IllegalCogNameError: If the name is reserved or not a valid identifier
        """
        name = cog_class.type_name
        if not name or not _TYPE_NAME.match(name):
            raise IllegalCogNameError(f"Invalid cog type name: {name!r}")
        if name in RESERVED_TYPE_NAMES:
            raise IllegalCogNameError(f"Cog type name is reserved: {name}")
        self._types[name] = cog_class

    def unregister(self, type_name: str) -> None:
        self._types.pop(type_name, None)

    def get(self, type_name: str) -> type[Cog]:
        """
        Get a registered cog class.

        Raises:
            UnknownCogTypeError: If nothing is registered under the name
        """
        if type_name not in self._types:
            raise UnknownCogTypeError(f"Cog type not found: {type_name}")
        return self._types[type_name]

    def has(self, type_name: str) -> bool:
        return type_name in self._types

    def list_types(self) -> list[str]:
        return list(self._types.keys())

    @classmethod
    def default(cls) -> "CogRegistry":
        """Registry with the built-in and system cogs."""
        from cogwork.cogs import BUILTIN_COGS
        from cogwork.system_cogs import SYSTEM_COGS

        registry = cls()
        for cog_class in (*SYSTEM_COGS, *BUILTIN_COGS):
            registry.register(cog_class)
        return registry


__all__ = ["CogRegistry", "RESERVED_TYPE_NAMES"]
