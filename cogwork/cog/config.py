"""
Cog configuration models.

Configs are pydantic models validated on assignment. Layers are plain
instances; only fields that were explicitly set on a layer take part in a
merge, so a name-level layer that sets nothing leaves the type-level values
alone.
"""

from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

from cogwork.errors import InvalidConfigError

ConfigT = TypeVar("ConfigT", bound="CogConfig")


class CogConfig(BaseModel):
    """
    Settings shared by every cog type.

    Fields:
    - run_async: launch the cog in the background and continue the scope
    - abort_on_failure: a failed cog aborts the enclosing scope
    - working_directory: directory for process-like cogs
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    run_async: bool = False
    abort_on_failure: bool = True
    working_directory: Path | None = None

    def merge(self: ConfigT, override: "CogConfig") -> ConfigT:
        """
        Layer ``override`` on top of this config.

        Only fields explicitly set on the override win. Fields the override
        type does not share with this config are ignored.

        Returns:
            A new config of this config's type
        """
        fields = type(self).model_fields
        update = {
            name: getattr(override, name)
            for name in override.model_fields_set
            if name in fields
        }
        return self.model_copy(update=update, deep=True)

    def use_default(self, field: str) -> None:
        """Reset ``field`` to its default and drop it from the merge set."""
        info = type(self).model_fields.get(field)
        if info is None:
            raise InvalidConfigError(f"Unknown config field: {field}")
        setattr(self, field, info.get_default(call_default_factory=True))
        self.model_fields_set.discard(field)

    def make_async(self) -> None:
        self.run_async = True

    def make_sync(self) -> None:
        self.run_async = False

    def continue_on_failure(self) -> None:
        self.abort_on_failure = False

    def valid_working_directory(self) -> Path | None:
        """
        Resolve the configured working directory.

        Raises:
            InvalidConfigError: If the path does not exist or is not a directory
        """
        if self.working_directory is None:
            return None
        path = self.working_directory.expanduser().resolve()
        if not path.exists():
            raise InvalidConfigError(f"Working directory does not exist: {path}")
        if not path.is_dir():
            raise InvalidConfigError(f"Working directory is not a directory: {path}")
        return path

    def explicit_values(self) -> dict[str, Any]:
        """Values explicitly set on this layer."""
        return {name: getattr(self, name) for name in self.model_fields_set}


__all__ = ["CogConfig"]
