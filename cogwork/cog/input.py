"""
Cog input contract.

Every cog is built the same way:
1. an empty Input is constructed
2. the step's input proc runs with the Input as a mutable parameter
3. coerce() receives the proc's return value
4. validate() raises InvalidInputError if required fields are still missing
"""

from dataclasses import dataclass, fields
from typing import Any, TypeVar

from cogwork.errors import InvalidInputError

InputT = TypeVar("InputT", bound="CogInput")


@dataclass
class CogInput:
    """Base input. Subclasses declare their fields as dataclass fields."""

    def coerce(self, value: Any) -> None:
        """Best-effort population from the input proc's return value."""

    def validate(self) -> None:
        """Raise InvalidInputError if the input cannot be executed."""

    def update(self: InputT, **values: Any) -> InputT:
        """
        Set several fields at once and return self.

        Handy from lambdas: ``lambda ctx, inp: inp.update(command="ls")``.
        """
        known = {f.name for f in fields(self)}
        unknown = set(values) - known
        if unknown:
            raise InvalidInputError(
                f"Unknown input fields for {type(self).__name__}: {sorted(unknown)}"
            )
        for name, value in values.items():
            setattr(self, name, value)
        return self


def require_text(value: str | None, field: str) -> str:
    """Return ``value`` or raise InvalidInputError when it is blank."""
    if value is None or not str(value).strip():
        raise InvalidInputError(f"'{field}' is required")
    return value


__all__ = ["CogInput", "require_text"]
