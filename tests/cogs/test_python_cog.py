"""
Tests for the python cog and its tagged output.
"""

import pytest

from cogwork import Workflow
from cogwork.cogs.python import PythonOutput, ValueKind


@pytest.mark.parametrize(
    "value,kind",
    [
        (1, ValueKind.SCALAR),
        ("text", ValueKind.SCALAR),
        (None, ValueKind.SCALAR),
        ({"a": 1}, ValueKind.MAPPING),
        ([1, 2], ValueKind.SEQUENCE),
        ((1, 2), ValueKind.SEQUENCE),
        (len, ValueKind.CALLABLE),
    ],
)
def test_kind_classification(value, kind):
    assert PythonOutput(value).kind is kind


def test_mapping_accessors():
    output = PythonOutput({"a": 1})

    assert output.as_dict() == {"a": 1}
    assert output["a"] == 1
    assert output.get("b", 2) == 2
    with pytest.raises(TypeError):
        output.as_list()


def test_sequence_accessors():
    output = PythonOutput([3, 4])

    assert output.as_list() == [3, 4]
    assert output[1] == 4
    with pytest.raises(TypeError):
        output.get("x")


def test_callable_accessor():
    output = PythonOutput(lambda a, b: a + b)

    assert output.call(1, b=2) == 3
    with pytest.raises(TypeError):
        PythonOutput(1).call()


def test_scalar_does_not_support_indexing():
    with pytest.raises(TypeError, match="does not support indexing"):
        PythonOutput(5)[0]


@pytest.mark.asyncio
async def test_value_set_through_input_or_return():
    workflow = Workflow()

    @workflow.execute()
    def main(ex):
        ex.python("returned", lambda ctx, inp: "from return")
        ex.python("assigned", lambda ctx, inp: inp.update(value="from input"))

        async def awaited(ctx, inp):
            return ctx.cog("returned").value.upper()

        ex.python("awaited", awaited)
        ex.outputs(
            lambda ctx: [ctx.cog(name).value for name in ("returned", "assigned", "awaited")]
        )

    assert await workflow.start() == ["from return", "from input", "FROM RETURN"]
