"""Shared helpers for declaratively specified converters."""

__docformat__ = "restructuredtext"
__all__ = [
    "REQUIRED",
    "VARIADIC",
    "AttrSpec",
    "check_arity",
    "emit",
    "make_converter",
    "read_attrs",
]

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from onnx import NodeProto

from onnxfront.converters._registry import Converter
from onnxfront.errors import InvalidNodeArity
from onnxfront.frontend.attrs import AttrKind, OnnxAttrs
from onnxfront.ir import IRBuilder, Value

REQUIRED = object()
VARIADIC = 2**31 - 1

# Post-processing hook: may validate or rewrite attribute values in place
AttrHook = Callable[[NodeProto, dict[str, Any]], None]


@dataclass(frozen=True)
class AttrSpec:
    """Expected tag of one attribute and its documented default.

    :param kind: Attribute tag
    :param default: Default when absent; ``REQUIRED`` makes absence an error and
        None leaves the attribute out of the IR instruction
    """

    kind: AttrKind
    default: Any = None


def check_arity(
    node: NodeProto,
    inputs: list[Value | None],
    num_inputs: tuple[int, int],
    num_outputs: tuple[int, int],
) -> None:
    """Validate input/output counts of a node.

    The first ``num_inputs[0]`` inputs are mandatory and must not be omitted.

    :raises InvalidNodeArity: On a count outside the allowed range
    """
    min_inputs, max_inputs = num_inputs
    if not min_inputs <= len(inputs) <= max_inputs:
        raise InvalidNodeArity(
            f"{node.op_type} expects {_describe(num_inputs)} input(s), got {len(inputs)}"
        )
    missing = [index for index in range(min_inputs) if inputs[index] is None]
    if missing:
        raise InvalidNodeArity(f"{node.op_type} mandatory input(s) {missing} are omitted")
    min_outputs, max_outputs = num_outputs
    if not min_outputs <= len(node.output) <= max_outputs:
        raise InvalidNodeArity(
            f"{node.op_type} expects {_describe(num_outputs)} output(s), got {len(node.output)}"
        )


def _describe(bounds: tuple[int, int]) -> str:
    low, high = bounds
    if low == high:
        return str(low)
    if high == VARIADIC:
        return f"at least {low}"
    return f"{low} to {high}"


def read_attrs(attrs: OnnxAttrs, specs: Mapping[str, AttrSpec]) -> dict[str, Any]:
    """Read every attribute named in ``specs`` through the accessor.

    :return: Attribute values; attributes with a None default that are absent are
        left out
    """
    values: dict[str, Any] = {}
    for key, spec in specs.items():
        if spec.default is REQUIRED:
            values[key] = attrs.require(key, spec.kind)
            continue
        value = attrs.get(key, spec.kind, spec.default)
        if value is not None:
            values[key] = value
    return values


def emit(
    builder: IRBuilder,
    node: NodeProto,
    inputs: list[Value | None],
    attributes: dict[str, Any],
) -> list[Value]:
    """Append the instruction for ``node`` and return its results."""
    inst = builder.create_instruction(
        node.op_type,
        inputs,
        attributes,
        name=node.name,
        output_names=list(node.output),
    )
    return list(inst.results)


def make_converter(
    num_inputs: tuple[int, int] = (1, 1),
    num_outputs: tuple[int, int] = (1, 1),
    attrs: Mapping[str, AttrSpec] | None = None,
    hook: AttrHook | None = None,
) -> Converter:
    """Create a converter from an arity and attribute schema.

    :param num_inputs: Inclusive (min, max) input count
    :param num_outputs: Inclusive (min, max) output count
    :param attrs: Attribute schema
    :param hook: Optional validation of the extracted attribute values
    :return: Converter function
    """
    specs = dict(attrs or {})

    def converter(
        builder: IRBuilder,
        node: NodeProto,
        inputs: list[Value | None],
        node_attrs: OnnxAttrs,
    ) -> list[Value]:
        check_arity(node, inputs, num_inputs, num_outputs)
        values = read_attrs(node_attrs, specs)
        if hook is not None:
            hook(node, values)
        return emit(builder, node, inputs, values)

    return converter
