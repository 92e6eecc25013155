"""IR element types and tensor types."""

__docformat__ = "restructuredtext"
__all__ = ["DYNAMIC", "DataType", "Type"]

import math
from dataclasses import dataclass
from enum import Enum

import torch

# Marker for an axis whose extent is only known at run time
DYNAMIC = None


class DataType(Enum):
    """Element types understood by the IR.

    :cvar FLOAT32: 32-bit IEEE float
    :cvar FLOAT16: 16-bit IEEE float
    :cvar BFLOAT16: 16-bit brain float
    :cvar FLOAT64: 64-bit IEEE float
    :cvar INT8: signed 8-bit integer
    :cvar INT16: signed 16-bit integer
    :cvar INT32: signed 32-bit integer
    :cvar INT64: signed 64-bit integer
    :cvar UINT8: unsigned 8-bit integer
    :cvar BOOL: boolean stored in one byte
    """

    FLOAT32 = "float32"
    FLOAT16 = "float16"
    BFLOAT16 = "bfloat16"
    FLOAT64 = "float64"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    BOOL = "bool"

    @property
    def itemsize(self) -> int:
        return _ITEMSIZE[self]

    @property
    def torch_dtype(self) -> torch.dtype:
        return _TORCH_DTYPE[self]

    @property
    def is_floating_point(self) -> bool:
        return self in (DataType.FLOAT32, DataType.FLOAT16, DataType.BFLOAT16, DataType.FLOAT64)


_ITEMSIZE = {
    DataType.FLOAT32: 4,
    DataType.FLOAT16: 2,
    DataType.BFLOAT16: 2,
    DataType.FLOAT64: 8,
    DataType.INT8: 1,
    DataType.INT16: 2,
    DataType.INT32: 4,
    DataType.INT64: 8,
    DataType.UINT8: 1,
    DataType.BOOL: 1,
}

_TORCH_DTYPE = {
    DataType.FLOAT32: torch.float32,
    DataType.FLOAT16: torch.float16,
    DataType.BFLOAT16: torch.bfloat16,
    DataType.FLOAT64: torch.float64,
    DataType.INT8: torch.int8,
    DataType.INT16: torch.int16,
    DataType.INT32: torch.int32,
    DataType.INT64: torch.int64,
    DataType.UINT8: torch.uint8,
    DataType.BOOL: torch.bool,
}


@dataclass(frozen=True)
class Type:
    """Tensor type: element type plus (possibly partial) shape.

    :param data_type: Element type
    :param shape: Per-axis extents, ``DYNAMIC`` for unknown axes; ``None`` if the rank
        itself is unknown
    """

    data_type: DataType
    shape: tuple[int | None, ...] | None = ()

    @property
    def rank(self) -> int | None:
        return None if self.shape is None else len(self.shape)

    @property
    def is_dynamic(self) -> bool:
        return self.shape is None or any(dim is DYNAMIC for dim in self.shape)

    @property
    def num_elements(self) -> int | None:
        """Total element count, or None when any extent is unknown."""
        if self.is_dynamic:
            return None
        return math.prod(self.shape)  # type: ignore[arg-type]

    def with_shape(self, shape: tuple[int | None, ...] | None) -> "Type":
        return Type(self.data_type, shape)

    def __str__(self) -> str:
        if self.shape is None:
            return f"{self.data_type.value}[*]"
        dims = ",".join("?" if dim is DYNAMIC else str(dim) for dim in self.shape)
        return f"{self.data_type.value}[{dims}]"
