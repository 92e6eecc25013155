"""Neural-network layer converters (convolution, pooling, normalization, RNN, ...)."""

__docformat__ = "restructuredtext"
__all__ = ["register_nn_converters"]

from typing import Any

from onnx import NodeProto

from onnxfront.converters._common import (
    REQUIRED,
    VARIADIC,
    AttrSpec,
    check_arity,
    emit,
    make_converter,
    read_attrs,
)
from onnxfront.converters._registry import ConverterRegistry
from onnxfront.errors import InvalidAttributeValue
from onnxfront.frontend.attrs import AttrKind, OnnxAttrs
from onnxfront.ir import DYNAMIC, IRBuilder, Value

_AUTO_PAD_MODES = ("NOTSET", "SAME_UPPER", "SAME_LOWER", "VALID")

_WINDOW_ATTRS = {
    "auto_pad": AttrSpec(AttrKind.STRING, "NOTSET"),
    "dilations": AttrSpec(AttrKind.INTS),
    "kernel_shape": AttrSpec(AttrKind.INTS),
    "pads": AttrSpec(AttrKind.INTS),
    "strides": AttrSpec(AttrKind.INTS),
}

_RNN_ATTRS = {
    "activation_alpha": AttrSpec(AttrKind.FLOATS),
    "activation_beta": AttrSpec(AttrKind.FLOATS),
    "activations": AttrSpec(AttrKind.STRINGS),
    "clip": AttrSpec(AttrKind.FLOAT),
    "direction": AttrSpec(AttrKind.STRING, "forward"),
    "hidden_size": AttrSpec(AttrKind.INT, REQUIRED),
    "layout": AttrSpec(AttrKind.INT, 0),
}


def _validate_auto_pad(auto_pad: str, op_name: str) -> None:
    """Validate the auto_pad mode.

    :param auto_pad: auto_pad value
    :param op_name: Operator name for error message
    """
    if auto_pad not in _AUTO_PAD_MODES:
        raise InvalidAttributeValue(f"{op_name} with auto_pad={auto_pad} is not valid")


def _infer_kernel_defaults(attrs: dict[str, Any], kernel_dims: int) -> dict[str, Any]:
    """Fill in default dilations, strides and pads for a window of ``kernel_dims`` axes.

    :param attrs: Attribute dictionary
    :param kernel_dims: Number of spatial axes
    :return: Updated attributes with inferred defaults
    """
    attrs.setdefault("dilations", tuple([1] * kernel_dims))
    attrs.setdefault("strides", tuple([1] * kernel_dims))
    if attrs["auto_pad"] == "NOTSET":
        attrs.setdefault("pads", tuple([0] * kernel_dims * 2))
    return attrs


def _check_window(op_name: str, attrs: dict[str, Any], kernel_dims: int) -> None:
    for key in ("dilations", "strides"):
        if key in attrs and len(attrs[key]) != kernel_dims:
            raise InvalidAttributeValue(
                f"{op_name} {key} {attrs[key]} does not match {kernel_dims} spatial axes"
            )
    if "pads" in attrs and len(attrs["pads"]) != 2 * kernel_dims:
        raise InvalidAttributeValue(
            f"{op_name} pads {attrs['pads']} must have {2 * kernel_dims} entries"
        )


def _kernel_from_weight(weight: Value | None) -> tuple[int, ...] | None:
    """Spatial extents of a convolution weight, when its shape is fully known."""
    if weight is None or weight.type is None or weight.type.shape is None:
        return None
    spatial = weight.type.shape[2:]
    if any(dim is DYNAMIC for dim in spatial):
        return None
    return tuple(spatial)  # type: ignore[arg-type]


def _make_conv_converter(extra_attrs: dict[str, AttrSpec]):
    specs = {**_WINDOW_ATTRS, "group": AttrSpec(AttrKind.INT, 1), **extra_attrs}

    def converter(
        builder: IRBuilder,
        node: NodeProto,
        inputs: list[Value | None],
        node_attrs: OnnxAttrs,
    ) -> list[Value]:
        check_arity(node, inputs, (2, 3), (1, 1))
        attrs = read_attrs(node_attrs, specs)
        _validate_auto_pad(attrs["auto_pad"], node.op_type)
        if "kernel_shape" not in attrs:
            kernel_shape = _kernel_from_weight(inputs[1])
            if kernel_shape is not None:
                attrs["kernel_shape"] = kernel_shape
        if "kernel_shape" in attrs:
            kernel_dims = len(attrs["kernel_shape"])
            _infer_kernel_defaults(attrs, kernel_dims)
            _check_window(node.op_type, attrs, kernel_dims)
        if attrs["group"] < 1:
            raise InvalidAttributeValue(f"{node.op_type} group must be positive")
        return emit(builder, node, inputs, attrs)

    return converter


def _make_pool_converter(extra_attrs: dict[str, AttrSpec], num_outputs=(1, 1)):
    specs = {**_WINDOW_ATTRS, "kernel_shape": AttrSpec(AttrKind.INTS, REQUIRED), **extra_attrs}

    def converter(
        builder: IRBuilder,
        node: NodeProto,
        inputs: list[Value | None],
        node_attrs: OnnxAttrs,
    ) -> list[Value]:
        check_arity(node, inputs, (1, 1), num_outputs)
        attrs = read_attrs(node_attrs, specs)
        _validate_auto_pad(attrs["auto_pad"], node.op_type)
        kernel_dims = len(attrs["kernel_shape"])
        _infer_kernel_defaults(attrs, kernel_dims)
        _check_window(node.op_type, attrs, kernel_dims)
        return emit(builder, node, inputs, attrs)

    return converter


def register_nn_converters(registry: ConverterRegistry) -> None:
    """Register neural-network layer converters.

    :param registry: Registry to populate
    """
    registry.register("Conv", _make_conv_converter({}))
    registry.register(
        "ConvTranspose",
        _make_conv_converter(
            {
                "output_padding": AttrSpec(AttrKind.INTS),
                "output_shape": AttrSpec(AttrKind.INTS),
            }
        ),
    )
    registry.register(
        "MaxPool",
        _make_pool_converter(
            {
                "ceil_mode": AttrSpec(AttrKind.INT, 0),
                "storage_order": AttrSpec(AttrKind.INT, 0),
            },
            num_outputs=(1, 2),
        ),
    )
    registry.register(
        "AveragePool",
        _make_pool_converter(
            {
                "ceil_mode": AttrSpec(AttrKind.INT, 0),
                "count_include_pad": AttrSpec(AttrKind.INT, 0),
            }
        ),
    )
    registry.register(
        "LpPool",
        _make_pool_converter(
            {"ceil_mode": AttrSpec(AttrKind.INT, 0), "p": AttrSpec(AttrKind.INT, 2)}
        ),
    )
    for op_type in ("GlobalAveragePool", "GlobalMaxPool"):
        registry.register(op_type, make_converter())
    registry.register("GlobalLpPool", make_converter(attrs={"p": AttrSpec(AttrKind.INT, 2)}))
    registry.register(
        "MaxRoiPool",
        make_converter(
            num_inputs=(2, 2),
            attrs={
                "pooled_shape": AttrSpec(AttrKind.INTS, REQUIRED),
                "spatial_scale": AttrSpec(AttrKind.FLOAT, 1.0),
            },
        ),
    )
    registry.register(
        "RoiAlign",
        make_converter(
            num_inputs=(3, 3),
            attrs={
                "coordinate_transformation_mode": AttrSpec(AttrKind.STRING, "half_pixel"),
                "mode": AttrSpec(AttrKind.STRING, "avg"),
                "output_height": AttrSpec(AttrKind.INT, 1),
                "output_width": AttrSpec(AttrKind.INT, 1),
                "sampling_ratio": AttrSpec(AttrKind.INT, 0),
                "spatial_scale": AttrSpec(AttrKind.FLOAT, 1.0),
            },
        ),
    )

    registry.register(
        "BatchNormalization",
        make_converter(
            num_inputs=(5, 5),
            num_outputs=(1, 3),
            attrs={
                "epsilon": AttrSpec(AttrKind.FLOAT, 1e-5),
                "momentum": AttrSpec(AttrKind.FLOAT, 0.9),
                "training_mode": AttrSpec(AttrKind.INT, 0),
            },
        ),
    )
    registry.register(
        "InstanceNormalization",
        make_converter(num_inputs=(3, 3), attrs={"epsilon": AttrSpec(AttrKind.FLOAT, 1e-5)}),
    )
    registry.register(
        "LayerNormalization",
        make_converter(
            num_inputs=(2, 3),
            num_outputs=(1, 3),
            attrs={
                "axis": AttrSpec(AttrKind.INT, -1),
                "epsilon": AttrSpec(AttrKind.FLOAT, 1e-5),
                "stash_type": AttrSpec(AttrKind.INT, 1),
            },
        ),
        since_version=17,
    )
    registry.register(
        "GroupNormalization",
        make_converter(
            num_inputs=(3, 3),
            attrs={
                "epsilon": AttrSpec(AttrKind.FLOAT, 1e-5),
                "num_groups": AttrSpec(AttrKind.INT, REQUIRED),
            },
        ),
        since_version=18,
    )
    registry.register(
        "LRN",
        make_converter(
            attrs={
                "alpha": AttrSpec(AttrKind.FLOAT, 0.0001),
                "beta": AttrSpec(AttrKind.FLOAT, 0.75),
                "bias": AttrSpec(AttrKind.FLOAT, 1.0),
                "size": AttrSpec(AttrKind.INT, REQUIRED),
            }
        ),
    )
    registry.register(
        "LpNormalization",
        make_converter(attrs={"axis": AttrSpec(AttrKind.INT, -1), "p": AttrSpec(AttrKind.INT, 2)}),
    )
    registry.register(
        "MeanVarianceNormalization",
        make_converter(attrs={"axes": AttrSpec(AttrKind.INTS, (0, 2, 3))}),
    )

    registry.register(
        "Gemm",
        make_converter(
            num_inputs=(2, 3),
            attrs={
                "alpha": AttrSpec(AttrKind.FLOAT, 1.0),
                "beta": AttrSpec(AttrKind.FLOAT, 1.0),
                "transA": AttrSpec(AttrKind.INT, 0),
                "transB": AttrSpec(AttrKind.INT, 0),
            },
        ),
    )
    registry.register("MatMul", make_converter(num_inputs=(2, 2)))
    registry.register("MatMulInteger", make_converter(num_inputs=(2, 4)))
    registry.register(
        "Einsum",
        make_converter(
            num_inputs=(1, VARIADIC),
            attrs={"equation": AttrSpec(AttrKind.STRING, REQUIRED)},
        ),
    )

    # Softmax family: default axis changed from 1 to -1 (and semantics) in opset 13
    for op_type in ("Softmax", "LogSoftmax", "Hardmax"):
        registry.register(op_type, make_converter(attrs={"axis": AttrSpec(AttrKind.INT, 1)}))
        registry.register(
            op_type,
            make_converter(attrs={"axis": AttrSpec(AttrKind.INT, -1)}),
            since_version=13,
        )

    # Dropout ratio moved from an attribute to an optional input in opset 12
    registry.register(
        "Dropout",
        make_converter(num_outputs=(1, 2), attrs={"ratio": AttrSpec(AttrKind.FLOAT, 0.5)}),
    )
    registry.register(
        "Dropout",
        make_converter(
            num_inputs=(1, 3), num_outputs=(1, 2), attrs={"seed": AttrSpec(AttrKind.INT)}
        ),
        since_version=12,
    )

    registry.register(
        "LSTM",
        make_converter(
            num_inputs=(3, 8),
            num_outputs=(0, 3),
            attrs={**_RNN_ATTRS, "input_forget": AttrSpec(AttrKind.INT, 0)},
        ),
    )
    registry.register(
        "GRU",
        make_converter(
            num_inputs=(3, 6),
            num_outputs=(0, 2),
            attrs={**_RNN_ATTRS, "linear_before_reset": AttrSpec(AttrKind.INT, 0)},
        ),
    )
    registry.register(
        "RNN", make_converter(num_inputs=(3, 6), num_outputs=(0, 2), attrs=dict(_RNN_ATTRS))
    )

    registry.register(
        "NonMaxSuppression",
        make_converter(num_inputs=(2, 5), attrs={"center_point_box": AttrSpec(AttrKind.INT, 0)}),
    )
    registry.register(
        "TopK",
        make_converter(
            num_inputs=(2, 2),
            num_outputs=(2, 2),
            attrs={
                "axis": AttrSpec(AttrKind.INT, -1),
                "largest": AttrSpec(AttrKind.INT, 1),
                "sorted": AttrSpec(AttrKind.INT, 1),
            },
        ),
        since_version=10,
    )
    for op_type in ("DepthToSpace", "SpaceToDepth"):
        attrs = {"blocksize": AttrSpec(AttrKind.INT, REQUIRED)}
        if op_type == "DepthToSpace":
            attrs["mode"] = AttrSpec(AttrKind.STRING, "DCR")
        registry.register(op_type, make_converter(attrs=attrs))
