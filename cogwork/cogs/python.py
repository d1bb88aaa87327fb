"""
python - pure computation.

The input proc computes the value; the cog wraps it in a tagged output so
callers read it through typed accessors instead of attribute delegation.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cogwork.cog.base import Cog
from cogwork.cog.input import CogInput
from cogwork.cog.output import CogOutput


class ValueKind(str, Enum):
    SCALAR = "scalar"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    CALLABLE = "callable"


def classify(value: Any) -> ValueKind:
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return ValueKind.SEQUENCE
    if callable(value):
        return ValueKind.CALLABLE
    return ValueKind.SCALAR


@dataclass
class PythonInput(CogInput):
    value: Any = None

    def coerce(self, value: Any) -> None:
        if self.value is None:
            self.value = value


@dataclass(frozen=True)
class PythonOutput(CogOutput):
    """
    Computed value plus its kind.

    Accessors check the kind and raise TypeError on a mismatch.
    """

    value: Any = None

    @property
    def kind(self) -> ValueKind:
        return classify(self.value)

    def as_dict(self) -> dict[Any, Any]:
        if self.kind is not ValueKind.MAPPING:
            raise TypeError(f"Value is a {self.kind.value}, not a mapping")
        return dict(self.value)

    def as_list(self) -> list[Any]:
        if self.kind is not ValueKind.SEQUENCE:
            raise TypeError(f"Value is a {self.kind.value}, not a sequence")
        return list(self.value)

    def __getitem__(self, key: Any) -> Any:
        if self.kind not in (ValueKind.MAPPING, ValueKind.SEQUENCE):
            raise TypeError(f"Value is a {self.kind.value} and does not support indexing")
        return self.value[key]

    def get(self, key: Any, default: Any = None) -> Any:
        if self.kind is not ValueKind.MAPPING:
            raise TypeError(f"Value is a {self.kind.value}, not a mapping")
        return self.value.get(key, default)

    def call(self, *args: Any, **kwargs: Any) -> Any:
        if self.kind is not ValueKind.CALLABLE:
            raise TypeError(f"Value is a {self.kind.value}, not callable")
        return self.value(*args, **kwargs)


class PythonCog(Cog):
    type_name = "python"
    Input = PythonInput

    async def execute(self, cog_input: PythonInput) -> PythonOutput:
        return PythonOutput(cog_input.value)


__all__ = ["PythonCog", "PythonInput", "PythonOutput", "ValueKind", "classify"]
