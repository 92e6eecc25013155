"""ONNX element types, value types and tensor payloads to IR types and tensors."""

__docformat__ = "restructuredtext"
__all__ = [
    "materialize_tensor",
    "resolve_element_type",
    "resolve_value_type",
    "tensor_from_values",
]

import math
from collections.abc import Sequence

import numpy as np
import torch
from onnx import TensorProto, ValueInfoProto, numpy_helper

from onnxfront.errors import MalformedTensorPayload, UnsupportedElementType
from onnxfront.ir import DYNAMIC, DataType, Tensor, Type

# ONNX dtype to IR dtype mapping
_ONNX_TO_DATA_TYPE = {
    TensorProto.FLOAT: DataType.FLOAT32,
    TensorProto.UINT8: DataType.UINT8,
    TensorProto.INT8: DataType.INT8,
    # TensorProto.UINT16 (not directly supported in PyTorch)
    TensorProto.INT16: DataType.INT16,
    TensorProto.INT32: DataType.INT32,
    TensorProto.INT64: DataType.INT64,
    TensorProto.BOOL: DataType.BOOL,
    TensorProto.FLOAT16: DataType.FLOAT16,
    TensorProto.DOUBLE: DataType.FLOAT64,
    # TensorProto.UINT32, TensorProto.UINT64 (not directly supported in PyTorch)
    TensorProto.BFLOAT16: DataType.BFLOAT16,
}

# numpy dtype of each element type; bfloat16 is widened to float32 before torch
_STORAGE_DTYPE = {
    DataType.FLOAT32: np.dtype(np.float32),
    DataType.FLOAT16: np.dtype(np.float16),
    DataType.FLOAT64: np.dtype(np.float64),
    DataType.INT8: np.dtype(np.int8),
    DataType.INT16: np.dtype(np.int16),
    DataType.INT32: np.dtype(np.int32),
    DataType.INT64: np.dtype(np.int64),
    DataType.UINT8: np.dtype(np.uint8),
    DataType.BOOL: np.dtype(np.bool_),
}

# TensorProto field holding the values when raw_data is not used
_TYPED_FIELD = {
    DataType.FLOAT32: "float_data",
    DataType.FLOAT64: "double_data",
    DataType.INT64: "int64_data",
}

# Value range of element types stored widened in int32_data (16-bit floats as bit patterns)
_INT32_DATA_RANGE = {
    DataType.INT8: (int(np.iinfo(np.int8).min), int(np.iinfo(np.int8).max)),
    DataType.UINT8: (0, int(np.iinfo(np.uint8).max)),
    DataType.INT16: (int(np.iinfo(np.int16).min), int(np.iinfo(np.int16).max)),
    DataType.BOOL: (0, 1),
    DataType.FLOAT16: (0, int(np.iinfo(np.uint16).max)),
    DataType.BFLOAT16: (0, int(np.iinfo(np.uint16).max)),
}


def _type_name(code: int) -> str:
    try:
        return TensorProto.DataType.Name(code)
    except ValueError:
        return str(code)


def resolve_element_type(code: int) -> DataType:
    """Map an ONNX element-type code to the IR element type.

    :param code: ``onnx.TensorProto.DataType`` value
    :return: IR data type
    :raises UnsupportedElementType: For codes the IR cannot represent
    """
    data_type = _ONNX_TO_DATA_TYPE.get(code)
    if data_type is None:
        raise UnsupportedElementType(f"Unsupported element type {_type_name(code)}")
    return data_type


def resolve_value_type(value_info: ValueInfoProto, fallback: Type | None = None) -> Type:
    """Build the IR type of a declared value.

    Axes given by ``dim_param`` or left empty become ``DYNAMIC``; a missing shape
    means unknown rank. When the declaration has no tensor element type (allowed
    for loop body inputs), ``fallback`` is used instead.

    :param value_info: ONNX value declaration
    :param fallback: Type to use when the declaration does not carry one
    :return: IR type
    """
    type_proto = value_info.type
    if type_proto.WhichOneof("value") != "tensor_type":
        if fallback is not None:
            return fallback
        raise UnsupportedElementType(f"Value '{value_info.name}' is not declared as a tensor")

    tensor_type = type_proto.tensor_type
    if tensor_type.elem_type == TensorProto.UNDEFINED:
        if fallback is not None:
            return fallback
        raise UnsupportedElementType(f"Value '{value_info.name}' has no element type")
    data_type = resolve_element_type(tensor_type.elem_type)

    if not tensor_type.HasField("shape"):
        if fallback is not None and fallback.data_type is data_type:
            return fallback
        return Type(data_type, None)

    dims: list[int | None] = []
    for dim in tensor_type.shape.dim:
        if dim.WhichOneof("value") == "dim_value":
            dims.append(dim.dim_value)
        else:
            dims.append(DYNAMIC)
    return Type(data_type, tuple(dims))


def _check_raw(proto: TensorProto, data_type: DataType, count: int) -> None:
    raw = proto.raw_data
    expected = count * data_type.itemsize
    if len(raw) != expected:
        raise MalformedTensorPayload(
            f"Tensor '{proto.name}' holds {len(raw)} bytes, expected {expected} "
            f"for {count} {data_type.value} element(s)"
        )


def _check_typed(proto: TensorProto, data_type: DataType, count: int) -> None:
    field_name = _TYPED_FIELD.get(data_type, "int32_data")
    values = getattr(proto, field_name)
    if len(values) != count:
        raise MalformedTensorPayload(
            f"Tensor '{proto.name}' holds {len(values)} value(s) in {field_name}, "
            f"expected {count}"
        )
    value_range = _INT32_DATA_RANGE.get(data_type)
    if value_range is None or not values:
        return
    low, high = value_range
    bad = [value for value in values if not low <= value <= high]
    if bad:
        raise MalformedTensorPayload(
            f"Tensor '{proto.name}' holds {data_type.value} value(s) out of range "
            f"[{low}, {high}]: {bad[:4]}"
        )


def materialize_tensor(proto: TensorProto) -> Tensor:
    """Decode an ONNX tensor payload into a typed IR tensor.

    Payload sizes and narrow integer ranges are validated before
    ``onnx.numpy_helper`` decodes the values.

    :param proto: ONNX tensor (initializer or tensor attribute)
    :return: IR tensor with torch storage
    :raises UnsupportedElementType: If the element type is not representable
    :raises MalformedTensorPayload: If the payload disagrees with the declared shape
        or type
    """
    data_type = resolve_element_type(proto.data_type)
    shape = tuple(proto.dims)
    if any(dim < 0 for dim in shape):
        raise MalformedTensorPayload(f"Tensor '{proto.name}' has negative dims {shape}")
    if proto.data_location == TensorProto.EXTERNAL:
        raise MalformedTensorPayload(
            f"Tensor '{proto.name}' refers to external data that was not loaded"
        )

    count = math.prod(shape)
    if proto.HasField("raw_data"):
        _check_raw(proto, data_type, count)
    else:
        _check_typed(proto, data_type, count)

    try:
        array = numpy_helper.to_array(proto)
    except (ValueError, TypeError) as error:
        raise MalformedTensorPayload(
            f"Tensor '{proto.name}' cannot be decoded: {error}"
        ) from error

    if data_type is DataType.BFLOAT16:
        # numpy_helper yields float32 or ml_dtypes.bfloat16 depending on the onnx release
        widened = np.asarray(array, dtype=np.float32).reshape(shape)
        data = torch.from_numpy(widened.copy()).to(torch.bfloat16)
    else:
        storage = np.asarray(array, dtype=_STORAGE_DTYPE[data_type]).reshape(shape)
        data = torch.from_numpy(storage.copy())
    return Tensor(name=proto.name, type=Type(data_type, shape), data=data)


def tensor_from_values(
    name: str,
    values: float | int | Sequence[float] | Sequence[int],
    data_type: DataType,
    shape: Sequence[int] | None = None,
) -> Tensor:
    """Build a tensor from Python scalars or a flat list.

    :param name: Tensor name
    :param values: Scalar (rank 0) or flat sequence (rank 1 unless ``shape`` is given)
    :param data_type: Element type
    :param shape: Optional target shape
    :return: IR tensor
    """
    data = torch.tensor(values, dtype=data_type.torch_dtype)
    if shape is not None:
        if math.prod(shape) != data.numel():
            raise MalformedTensorPayload(
                f"Tensor '{name}' has {data.numel()} value(s), shape {tuple(shape)} "
                f"needs {math.prod(shape)}"
            )
        data = data.reshape(tuple(shape))
    return Tensor(name=name, type=Type(data_type, tuple(data.shape)), data=data)
