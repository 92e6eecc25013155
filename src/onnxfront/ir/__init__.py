"""Intermediate representation produced by the ONNX frontend."""

__docformat__ = "restructuredtext"
__all__ = [
    "DYNAMIC",
    "Argument",
    "BasicBlock",
    "Constant",
    "DataType",
    "Function",
    "IRBuilder",
    "Instruction",
    "Result",
    "Tensor",
    "Type",
    "Value",
    "format_function",
]

from onnxfront.ir.builder import IRBuilder
from onnxfront.ir.printer import format_function
from onnxfront.ir.tensor import Tensor
from onnxfront.ir.types import DYNAMIC, DataType, Type
from onnxfront.ir.values import (
    Argument,
    BasicBlock,
    Constant,
    Function,
    Instruction,
    Result,
    Value,
)
