"""Converters that materialize constant data from attributes."""

__docformat__ = "restructuredtext"
__all__ = ["register_constant_converters"]

from onnx import NodeProto

from onnxfront.converters._common import check_arity, emit
from onnxfront.converters._registry import ConverterRegistry
from onnxfront.errors import InvalidAttributeValue, MissingAttribute, UnsupportedElementType
from onnxfront.frontend.attrs import AttrKind, OnnxAttrs
from onnxfront.frontend.materialize import materialize_tensor, tensor_from_values
from onnxfront.ir import DataType, IRBuilder, Tensor, Value

# Constant value attributes: name -> (tag, element type for the scalar/list forms)
_CONSTANT_VALUE_ATTRS: dict[str, tuple[AttrKind, DataType | None]] = {
    "value": (AttrKind.TENSOR, None),
    "value_float": (AttrKind.FLOAT, DataType.FLOAT32),
    "value_floats": (AttrKind.FLOATS, DataType.FLOAT32),
    "value_int": (AttrKind.INT, DataType.INT64),
    "value_ints": (AttrKind.INTS, DataType.INT64),
}

_UNSUPPORTED_VALUE_ATTRS = ("sparse_value", "value_string", "value_strings")


def _constant_tensor(node: NodeProto, attrs: OnnxAttrs) -> Tensor:
    present = [key for key in (*_CONSTANT_VALUE_ATTRS, *_UNSUPPORTED_VALUE_ATTRS) if key in attrs]
    if not present:
        raise MissingAttribute("Constant requires one of " + ", ".join(_CONSTANT_VALUE_ATTRS))
    if len(present) > 1:
        raise InvalidAttributeValue(f"Constant has more than one value attribute: {present}")

    key = present[0]
    if key in _UNSUPPORTED_VALUE_ATTRS:
        raise UnsupportedElementType(f"Constant attribute '{key}' is not supported")
    kind, data_type = _CONSTANT_VALUE_ATTRS[key]
    value = attrs.require(key, kind)
    name = node.output[0]
    if data_type is None:
        tensor = materialize_tensor(value)
        return Tensor(name=name, type=tensor.type, data=tensor.data)
    return tensor_from_values(name, list(value) if isinstance(value, tuple) else value, data_type)


def _convert_constant(
    builder: IRBuilder,
    node: NodeProto,
    inputs: list[Value | None],
    attrs: OnnxAttrs,
) -> list[Value]:
    check_arity(node, inputs, (0, 0), (1, 1))
    tensor = _constant_tensor(node, attrs)
    return [builder.create_constant(node.output[0], tensor)]


def _convert_constant_of_shape(
    builder: IRBuilder,
    node: NodeProto,
    inputs: list[Value | None],
    attrs: OnnxAttrs,
) -> list[Value]:
    check_arity(node, inputs, (1, 1), (1, 1))
    proto = attrs.get_tensor("value")
    if proto is None:
        fill = tensor_from_values("", [0.0], DataType.FLOAT32)
    else:
        fill = materialize_tensor(proto)
        if fill.type.num_elements != 1:
            raise InvalidAttributeValue(
                f"ConstantOfShape value must hold one element, got shape {fill.shape}"
            )
    return emit(builder, node, inputs, {"value": fill})


def register_constant_converters(registry: ConverterRegistry) -> None:
    """Register Constant and ConstantOfShape.

    :param registry: Registry to populate
    """
    registry.register("Constant", _convert_constant)
    registry.register("ConstantOfShape", _convert_constant_of_shape, since_version=9)
