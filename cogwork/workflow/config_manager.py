"""
ConfigManager - layered cog configuration.

Config procs declare layers; the manager resolves a fresh merged config for a
cog right before it runs. Precedence, least to most specific:

    type defaults < global < type-wide < pattern matches < exact name

Pattern layers apply in the order they were declared.
"""

import re
from typing import TYPE_CHECKING, Any, Callable, Iterable

from cogwork.cog.config import CogConfig
from cogwork.cog.registry import CogRegistry

if TYPE_CHECKING:
    from cogwork.cog.base import Cog

ConfigProc = Callable[["ConfigContext"], Any]


class ConfigManager:
    """Holds config layers for one workflow run."""

    def __init__(self, registry: CogRegistry):
        self._registry = registry
        self._global = CogConfig()
        self._type_layers: dict[str, CogConfig] = {}
        self._name_layers: dict[tuple[str, str], CogConfig] = {}
        self._pattern_layers: list[tuple[str, re.Pattern[str], CogConfig]] = []

    def prepare(self, procs: Iterable[ConfigProc]) -> None:
        """Run config procs against a fresh ConfigContext."""
        context = ConfigContext(self)
        for proc in procs:
            proc(context)

    def global_layer(self) -> CogConfig:
        return self._global

    def layer(self, type_name: str, name: "str | re.Pattern[str] | None" = None) -> CogConfig:
        """
        Get or create the layer for a cog type, optionally scoped to a name
        or regex pattern.

        Raises:
            UnknownCogTypeError: If the type is not registered
        """
        config_class = self._registry.get(type_name).Config

        if name is None:
            if type_name not in self._type_layers:
                self._type_layers[type_name] = config_class()
            return self._type_layers[type_name]

        if isinstance(name, re.Pattern):
            for layer_type, pattern, layer in self._pattern_layers:
                if layer_type == type_name and pattern == name:
                    return layer
            layer = config_class()
            self._pattern_layers.append((type_name, name, layer))
            return layer

        key = (type_name, name)
        if key not in self._name_layers:
            self._name_layers[key] = config_class()
        return self._name_layers[key]

    def config_for(self, cog: "Cog") -> CogConfig:
        """Resolve the merged config for ``cog``. Always returns a new instance."""
        type_name = cog.type_name
        config = type(cog).Config().merge(self._global)

        type_layer = self._type_layers.get(type_name)
        if type_layer is not None:
            config = config.merge(type_layer)

        for layer_type, pattern, layer in self._pattern_layers:
            if layer_type == type_name and pattern.search(cog.name):
                config = config.merge(layer)

        name_layer = self._name_layers.get((type_name, cog.name))
        if name_layer is not None:
            config = config.merge(name_layer)

        return config


class ConfigContext:
    """
    Object passed to config procs.

    Examples:
        >>> @workflow.config
        ... def configure(c):
        ...     c.global_config().continue_on_failure()
        ...     c.cog("cmd").display()
        ...     c.cog("map", "fan_out").parallel = 4
        ...     c.cog("cmd", re.compile(r"^lint_")).make_async()
    """

    def __init__(self, manager: ConfigManager):
        self._manager = manager

    def global_config(self) -> CogConfig:
        """Layer applied to every cog."""
        return self._manager.global_layer()

    def cog(self, type_name: str, name: "str | re.Pattern[str] | None" = None) -> Any:
        """Layer for a cog type, optionally scoped to a name or pattern."""
        return self._manager.layer(type_name, name)


__all__ = ["ConfigManager", "ConfigContext", "ConfigProc"]
