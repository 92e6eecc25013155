"""IR values, instructions, basic blocks and functions.

Values are handles: they compare by identity and are never mutated once created.
Instructions and blocks are filled in by :class:`onnxfront.ir.builder.IRBuilder`.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "Argument",
    "BasicBlock",
    "Constant",
    "Function",
    "Instruction",
    "Result",
    "Value",
]

from dataclasses import dataclass, field
from typing import Any

from onnxfront.ir.tensor import Tensor
from onnxfront.ir.types import Type


@dataclass(frozen=True, eq=False)
class Value:
    """Base IR value handle.

    :param name: Source name the value was produced under
    :param type: Best-effort static type, None if unknown
    """

    name: str
    type: Type | None


@dataclass(frozen=True, eq=False)
class Argument(Value):
    """Placeholder supplied at run time (function or block argument)."""


@dataclass(frozen=True, eq=False)
class Constant(Value):
    """Compile-time constant backed by a materialized tensor."""

    tensor: Tensor


@dataclass(frozen=True, eq=False)
class Result(Value):
    """The ``index``-th output of an instruction."""

    producer: "Instruction"
    index: int


@dataclass(eq=False)
class Instruction:
    """One operator application.

    :param op_type: Operator kind (ONNX op type, or "Return"/"Dummy")
    :param name: Instruction name (ONNX node name or generated)
    :param operands: Resolved input values; None marks an omitted optional input
    :param attributes: Attribute values already read and validated by the converter
    :param results: Output values in declaration order
    :param blocks: Nested basic blocks (Loop body, If branches) keyed by role
    """

    op_type: str
    name: str
    operands: tuple[Value | None, ...]
    attributes: dict[str, Any] = field(default_factory=dict)
    results: list[Result] = field(default_factory=list)
    blocks: dict[str, "BasicBlock"] = field(default_factory=dict)

    @property
    def num_results(self) -> int:
        return len(self.results)


@dataclass(eq=False)
class BasicBlock:
    """Ordered list of instructions plus the arguments the block receives."""

    name: str
    arguments: list[Argument] = field(default_factory=list)
    instructions: list[Instruction] = field(default_factory=list)

    @property
    def terminator(self) -> Instruction | None:
        if self.instructions and self.instructions[-1].op_type == "Return":
            return self.instructions[-1]
        return None

    def walk(self):
        """Yield every instruction in this block and its nested blocks, depth first."""
        for inst in self.instructions:
            yield inst
            for block in inst.blocks.values():
                yield from block.walk()


@dataclass(eq=False)
class Function:
    """Top-level IR unit produced by a conversion."""

    name: str
    body: BasicBlock
    constants: list[Constant] = field(default_factory=list)

    @property
    def arguments(self) -> list[Argument]:
        return self.body.arguments

    @property
    def outputs(self) -> tuple[Value | None, ...]:
        terminator = self.body.terminator
        return () if terminator is None else terminator.operands
