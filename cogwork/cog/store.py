"""
CogStore - per scope invocation cog namespace.
"""

from typing import Iterator

from cogwork.cog.base import Cog
from cogwork.errors import CogAlreadyDefinedError


class CogStore:
    """
    Insertion-ordered mapping of cog name to Cog.

    One store belongs to exactly one ExecutionManager. Names are unique per
    store, not globally: two iterations of the same map each get their own.
    """

    def __init__(self):
        self._cogs: dict[str, Cog] = {}

    def add(self, cog: Cog) -> Cog:
        """
        Register a cog.

        Raises:
            CogAlreadyDefinedError: If the name is taken in this store
        """
        if cog.name in self._cogs:
            raise CogAlreadyDefinedError(cog.name)
        self._cogs[cog.name] = cog
        return cog

    def get(self, name: str) -> Cog | None:
        return self._cogs.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._cogs

    def __iter__(self) -> Iterator[Cog]:
        return iter(list(self._cogs.values()))

    def __len__(self) -> int:
        return len(self._cogs)

    def names(self) -> list[str]:
        return list(self._cogs.keys())


__all__ = ["CogStore"]
