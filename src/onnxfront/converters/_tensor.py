"""Tensor shape, indexing, reduction and type conversion converters."""

__docformat__ = "restructuredtext"
__all__ = ["register_tensor_converters"]

from typing import Any

from onnx import NodeProto

from onnxfront.converters._common import REQUIRED, VARIADIC, AttrSpec, make_converter
from onnxfront.converters._registry import ConverterRegistry
from onnxfront.errors import InvalidAttributeValue
from onnxfront.frontend.attrs import AttrKind
from onnxfront.frontend.materialize import resolve_element_type

_REDUCE_OPS = (
    "ReduceL1",
    "ReduceL2",
    "ReduceLogSum",
    "ReduceLogSumExp",
    "ReduceMax",
    "ReduceMean",
    "ReduceMin",
    "ReduceProd",
    "ReduceSumSquare",
)

_SCATTER_REDUCTIONS = ("none", "add", "mul", "max", "min")


def _check_reduction(node: NodeProto, attrs: dict[str, Any]) -> None:
    if attrs["reduction"] not in _SCATTER_REDUCTIONS:
        raise InvalidAttributeValue(
            f"{node.op_type} with reduction={attrs['reduction']} is not supported"
        )


def _check_transpose_perm(node: NodeProto, attrs: dict[str, Any]) -> None:
    perm = attrs.get("perm")
    if perm is not None and sorted(perm) != list(range(len(perm))):
        raise InvalidAttributeValue(f"Transpose perm {perm} is not a permutation")


def _check_select_last_index(node: NodeProto, attrs: dict[str, Any]) -> None:
    if attrs["select_last_index"] not in (0, 1):
        raise InvalidAttributeValue(
            f"{node.op_type} select_last_index must be 0 or 1, got {attrs['select_last_index']}"
        )


def _resolve_cast_target(node: NodeProto, attrs: dict[str, Any]) -> None:
    """Replace the ONNX ``to`` code with the IR element type."""
    attrs["to"] = resolve_element_type(attrs["to"])


def _resolve_optional_dtype(node: NodeProto, attrs: dict[str, Any]) -> None:
    if "dtype" in attrs:
        attrs["dtype"] = resolve_element_type(attrs["dtype"])


def _check_pad_mode(node: NodeProto, attrs: dict[str, Any]) -> None:
    if attrs["mode"] not in ("constant", "reflect", "edge", "wrap"):
        raise InvalidAttributeValue(f"Pad with mode={attrs['mode']} is not supported")


def _register_reductions(registry: ConverterRegistry) -> None:
    keepdims = AttrSpec(AttrKind.INT, 1)
    legacy = make_converter(attrs={"axes": AttrSpec(AttrKind.INTS), "keepdims": keepdims})
    # Axes moved to an optional input: opset 13 for ReduceSum, 18 for the rest
    as_input = make_converter(
        num_inputs=(1, 2),
        attrs={"keepdims": keepdims, "noop_with_empty_axes": AttrSpec(AttrKind.INT, 0)},
    )
    for op_type in _REDUCE_OPS:
        registry.register(op_type, legacy)
        registry.register(op_type, as_input, since_version=18)
    registry.register("ReduceSum", legacy)
    registry.register("ReduceSum", as_input, since_version=13)

    for op_type in ("ArgMax", "ArgMin"):
        registry.register(
            op_type,
            make_converter(
                attrs={
                    "axis": AttrSpec(AttrKind.INT, 0),
                    "keepdims": keepdims,
                    "select_last_index": AttrSpec(AttrKind.INT, 0),
                },
                hook=_check_select_last_index,
            ),
        )


def _register_shape_ops(registry: ConverterRegistry) -> None:
    registry.register(
        "Reshape",
        make_converter(num_inputs=(2, 2), attrs={"allowzero": AttrSpec(AttrKind.INT, 0)}),
        since_version=5,
    )
    registry.register(
        "Transpose",
        make_converter(attrs={"perm": AttrSpec(AttrKind.INTS)}, hook=_check_transpose_perm),
    )
    registry.register(
        "Concat",
        make_converter(
            num_inputs=(1, VARIADIC), attrs={"axis": AttrSpec(AttrKind.INT, REQUIRED)}
        ),
    )
    registry.register("Flatten", make_converter(attrs={"axis": AttrSpec(AttrKind.INT, 1)}))
    registry.register("Expand", make_converter(num_inputs=(2, 2)), since_version=8)
    registry.register("Tile", make_converter(num_inputs=(2, 2)), since_version=6)
    registry.register(
        "Shape",
        make_converter(
            attrs={"end": AttrSpec(AttrKind.INT), "start": AttrSpec(AttrKind.INT, 0)}
        ),
    )
    registry.register("Size", make_converter())
    registry.register(
        "Trilu",
        make_converter(num_inputs=(1, 2), attrs={"upper": AttrSpec(AttrKind.INT, 1)}),
        since_version=14,
    )

    # Squeeze/Unsqueeze axes moved from an attribute to an input in opset 13
    registry.register("Squeeze", make_converter(attrs={"axes": AttrSpec(AttrKind.INTS)}))
    registry.register("Squeeze", make_converter(num_inputs=(1, 2)), since_version=13)
    registry.register(
        "Unsqueeze", make_converter(attrs={"axes": AttrSpec(AttrKind.INTS, REQUIRED)})
    )
    registry.register("Unsqueeze", make_converter(num_inputs=(2, 2)), since_version=13)

    registry.register(
        "Split",
        make_converter(
            num_inputs=(1, 2),
            num_outputs=(1, VARIADIC),
            attrs={"axis": AttrSpec(AttrKind.INT, 0), "split": AttrSpec(AttrKind.INTS)},
        ),
    )
    registry.register(
        "Split",
        make_converter(
            num_inputs=(1, 2),
            num_outputs=(1, VARIADIC),
            attrs={"axis": AttrSpec(AttrKind.INT, 0)},
        ),
        since_version=13,
    )
    registry.register(
        "Split",
        make_converter(
            num_inputs=(1, 2),
            num_outputs=(1, VARIADIC),
            attrs={"axis": AttrSpec(AttrKind.INT, 0), "num_outputs": AttrSpec(AttrKind.INT)},
        ),
        since_version=18,
    )

    # Slice starts/ends moved from attributes to inputs in opset 10
    registry.register(
        "Slice",
        make_converter(
            attrs={
                "axes": AttrSpec(AttrKind.INTS),
                "ends": AttrSpec(AttrKind.INTS, REQUIRED),
                "starts": AttrSpec(AttrKind.INTS, REQUIRED),
            }
        ),
    )
    registry.register("Slice", make_converter(num_inputs=(3, 5)), since_version=10)

    # Pad amounts moved from attributes to inputs in opset 11
    registry.register(
        "Pad",
        make_converter(
            attrs={
                "mode": AttrSpec(AttrKind.STRING, "constant"),
                "pads": AttrSpec(AttrKind.INTS, REQUIRED),
                "value": AttrSpec(AttrKind.FLOAT, 0.0),
            },
            hook=_check_pad_mode,
        ),
        since_version=2,
    )
    registry.register(
        "Pad",
        make_converter(
            num_inputs=(2, 4),
            attrs={"mode": AttrSpec(AttrKind.STRING, "constant")},
            hook=_check_pad_mode,
        ),
        since_version=11,
    )

    registry.register(
        "Upsample",
        make_converter(num_inputs=(2, 2), attrs={"mode": AttrSpec(AttrKind.STRING, "nearest")}),
        since_version=9,
    )
    registry.register(
        "Resize",
        make_converter(
            num_inputs=(1, 4),
            attrs={
                "antialias": AttrSpec(AttrKind.INT, 0),
                "axes": AttrSpec(AttrKind.INTS),
                "coordinate_transformation_mode": AttrSpec(AttrKind.STRING, "half_pixel"),
                "cubic_coeff_a": AttrSpec(AttrKind.FLOAT, -0.75),
                "exclude_outside": AttrSpec(AttrKind.INT, 0),
                "extrapolation_value": AttrSpec(AttrKind.FLOAT, 0.0),
                "keep_aspect_ratio_policy": AttrSpec(AttrKind.STRING, "stretch"),
                "mode": AttrSpec(AttrKind.STRING, "nearest"),
                "nearest_mode": AttrSpec(AttrKind.STRING, "round_prefer_floor"),
            },
        ),
        since_version=10,
    )


def _register_indexing_ops(registry: ConverterRegistry) -> None:
    axis0 = {"axis": AttrSpec(AttrKind.INT, 0)}
    registry.register("Gather", make_converter(num_inputs=(2, 2), attrs=axis0))
    registry.register("GatherElements", make_converter(num_inputs=(2, 2), attrs=axis0))
    registry.register(
        "GatherND",
        make_converter(num_inputs=(2, 2), attrs={"batch_dims": AttrSpec(AttrKind.INT, 0)}),
    )
    reduction = {"reduction": AttrSpec(AttrKind.STRING, "none")}
    registry.register(
        "ScatterElements",
        make_converter(num_inputs=(3, 3), attrs={**axis0, **reduction}, hook=_check_reduction),
    )
    registry.register(
        "ScatterND",
        make_converter(num_inputs=(3, 3), attrs=reduction, hook=_check_reduction),
    )
    registry.register("NonZero", make_converter())
    registry.register(
        "Compress",
        make_converter(num_inputs=(2, 2), attrs={"axis": AttrSpec(AttrKind.INT)}),
    )
    registry.register(
        "OneHot",
        make_converter(num_inputs=(3, 3), attrs={"axis": AttrSpec(AttrKind.INT, -1)}),
    )
    registry.register(
        "CumSum",
        make_converter(
            num_inputs=(2, 2),
            attrs={
                "exclusive": AttrSpec(AttrKind.INT, 0),
                "reverse": AttrSpec(AttrKind.INT, 0),
            },
        ),
    )
    registry.register(
        "ReverseSequence",
        make_converter(
            num_inputs=(2, 2),
            attrs={
                "batch_axis": AttrSpec(AttrKind.INT, 1),
                "time_axis": AttrSpec(AttrKind.INT, 0),
            },
        ),
    )
    registry.register("Range", make_converter(num_inputs=(3, 3)))


def _register_type_ops(registry: ConverterRegistry) -> None:
    registry.register(
        "Cast",
        make_converter(
            attrs={"saturate": AttrSpec(AttrKind.INT, 1), "to": AttrSpec(AttrKind.INT, REQUIRED)},
            hook=_resolve_cast_target,
        ),
    )
    registry.register("CastLike", make_converter(num_inputs=(2, 2)))
    registry.register(
        "EyeLike",
        make_converter(
            attrs={"dtype": AttrSpec(AttrKind.INT), "k": AttrSpec(AttrKind.INT, 0)},
            hook=_resolve_optional_dtype,
        ),
    )
    quant_axis = {"axis": AttrSpec(AttrKind.INT, 1)}
    registry.register(
        "QuantizeLinear", make_converter(num_inputs=(2, 3), attrs=quant_axis), since_version=10
    )
    registry.register(
        "DequantizeLinear", make_converter(num_inputs=(2, 3), attrs=quant_axis), since_version=10
    )
    registry.register(
        "DynamicQuantizeLinear", make_converter(num_outputs=(3, 3)), since_version=11
    )


def register_tensor_converters(registry: ConverterRegistry) -> None:
    """Register tensor manipulation converters.

    :param registry: Registry to populate
    """
    _register_reductions(registry)
    _register_shape_ops(registry)
    _register_indexing_ops(registry)
    _register_type_ops(registry)
