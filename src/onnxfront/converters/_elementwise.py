"""Element-wise math, logic and activation converters."""

__docformat__ = "restructuredtext"
__all__ = ["register_elementwise_converters"]

from typing import Any

from onnx import NodeProto

from onnxfront.converters._common import REQUIRED, VARIADIC, AttrSpec, make_converter
from onnxfront.converters._registry import ConverterRegistry
from onnxfront.errors import InvalidAttributeValue
from onnxfront.frontend.attrs import AttrKind

_UNARY_OPS = (
    "Abs",
    "Acos",
    "Acosh",
    "Asin",
    "Asinh",
    "Atan",
    "Atanh",
    "BitwiseNot",
    "Ceil",
    "Cos",
    "Cosh",
    "Erf",
    "Exp",
    "Floor",
    "HardSwish",
    "Identity",
    "IsNaN",
    "Log",
    "Mish",
    "Neg",
    "Not",
    "Reciprocal",
    "Relu",
    "Round",
    "Sigmoid",
    "Sign",
    "Sin",
    "Sinh",
    "Softplus",
    "Softsign",
    "Sqrt",
    "Tan",
    "Tanh",
)

_BINARY_OPS = (
    "Add",
    "And",
    "BitwiseAnd",
    "BitwiseOr",
    "BitwiseXor",
    "Div",
    "Equal",
    "Greater",
    "GreaterOrEqual",
    "Less",
    "LessOrEqual",
    "Mul",
    "Or",
    "Pow",
    "PRelu",
    "Sub",
    "Xor",
)

_VARIADIC_OPS = ("Max", "Mean", "Min", "Sum")

# Unary activations with float parameters: op_type -> {attribute: default}
_ACTIVATION_DEFAULTS: dict[str, dict[str, float]] = {
    "Celu": {"alpha": 1.0},
    "Elu": {"alpha": 1.0},
    "HardSigmoid": {"alpha": 0.2, "beta": 0.5},
    "LeakyRelu": {"alpha": 0.01},
    "Selu": {"alpha": 1.67326319217681884765625, "gamma": 1.05070102214813232421875},
    "Shrink": {"bias": 0.0, "lambd": 0.5},
    "ThresholdedRelu": {"alpha": 1.0},
}


def _float_attrs(defaults: dict[str, float]) -> dict[str, AttrSpec]:
    return {name: AttrSpec(AttrKind.FLOAT, default) for name, default in defaults.items()}


def _check_bitshift_direction(node: NodeProto, attrs: dict[str, Any]) -> None:
    if attrs["direction"] not in ("LEFT", "RIGHT"):
        raise InvalidAttributeValue(
            f"BitShift direction must be 'LEFT' or 'RIGHT', got '{attrs['direction']}'"
        )


def _check_gelu_approximate(node: NodeProto, attrs: dict[str, Any]) -> None:
    if attrs["approximate"] not in ("none", "tanh"):
        raise InvalidAttributeValue(
            f"Gelu with approximate={attrs['approximate']} is not supported"
        )


def register_elementwise_converters(registry: ConverterRegistry) -> None:
    """Register element-wise converters.

    :param registry: Registry to populate
    """
    unary = make_converter()
    for op_type in _UNARY_OPS:
        registry.register(op_type, unary)

    binary = make_converter(num_inputs=(2, 2))
    for op_type in _BINARY_OPS:
        registry.register(op_type, binary)

    variadic = make_converter(num_inputs=(1, VARIADIC))
    for op_type in _VARIADIC_OPS:
        registry.register(op_type, variadic)

    for op_type, defaults in _ACTIVATION_DEFAULTS.items():
        registry.register(op_type, make_converter(attrs=_float_attrs(defaults)))

    registry.register(
        "Gelu",
        make_converter(
            attrs={"approximate": AttrSpec(AttrKind.STRING, "none")},
            hook=_check_gelu_approximate,
        ),
        since_version=20,
    )
    registry.register(
        "IsInf",
        make_converter(
            attrs={
                "detect_negative": AttrSpec(AttrKind.INT, 1),
                "detect_positive": AttrSpec(AttrKind.INT, 1),
            }
        ),
    )
    registry.register(
        "BitShift",
        make_converter(
            num_inputs=(2, 2),
            attrs={"direction": AttrSpec(AttrKind.STRING, REQUIRED)},
            hook=_check_bitshift_direction,
        ),
    )
    registry.register(
        "Mod", make_converter(num_inputs=(2, 2), attrs={"fmod": AttrSpec(AttrKind.INT, 0)})
    )
    registry.register("Where", make_converter(num_inputs=(3, 3)))

    # Clip bounds moved from attributes to optional inputs in opset 11
    registry.register(
        "Clip",
        make_converter(
            attrs={
                "min": AttrSpec(AttrKind.FLOAT, -3.4028234663852886e38),
                "max": AttrSpec(AttrKind.FLOAT, 3.4028234663852886e38),
            }
        ),
    )
    registry.register("Clip", make_converter(num_inputs=(1, 3)), since_version=11)
