"""Materialized constant tensors."""

__docformat__ = "restructuredtext"
__all__ = ["Tensor"]

from dataclasses import dataclass

import torch

from onnxfront.ir.types import Type


@dataclass(frozen=True, eq=False)
class Tensor:
    """Typed in-memory tensor holding constant data.

    :param name: Source tensor name ("" for anonymous attribute tensors)
    :param type: Static type; the shape is always fully known
    :param data: Tensor payload with matching dtype and shape
    """

    name: str
    type: Type
    data: torch.Tensor

    def __post_init__(self) -> None:
        if self.data.dtype != self.type.data_type.torch_dtype:
            raise ValueError(
                f"Tensor '{self.name}' data has dtype {self.data.dtype}, "
                f"expected {self.type.data_type.torch_dtype}"
            )
        if tuple(self.data.shape) != self.type.shape:
            raise ValueError(
                f"Tensor '{self.name}' data has shape {tuple(self.data.shape)}, "
                f"expected {self.type.shape}"
            )

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(self.data.shape)

    def tolist(self) -> list | int | float | bool:
        return self.data.tolist()  # type: ignore[no-any-return]
