"""IR construction primitives."""

__docformat__ = "restructuredtext"
__all__ = ["IRBuilder"]

from collections import ChainMap
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from onnxfront.ir.tensor import Tensor
from onnxfront.ir.types import Type
from onnxfront.ir.values import (
    Argument,
    BasicBlock,
    Constant,
    Function,
    Instruction,
    Result,
    Value,
)


class IRBuilder:
    """Build one :class:`Function`, appending to a movable insertion block.

    Result types are looked up by output name in ``value_types``; names without an
    entry get type None.
    """

    def __init__(self, function_name: str, value_types: Mapping[str, Type] | None = None):
        self.function = Function(name=function_name, body=BasicBlock(name="entry"))
        self.value_types: ChainMap[str, Type] = ChainMap(dict(value_types or {}))
        self._block = self.function.body
        self._counter = 0

    @property
    def insertion_block(self) -> BasicBlock:
        return self._block

    def _fresh_name(self, prefix: str) -> str:
        name = f"{prefix}_{self._counter}"
        self._counter += 1
        return name

    def create_argument(self, name: str, value_type: Type | None) -> Argument:
        """Create a placeholder argument of the current block."""
        argument = Argument(name=name, type=value_type)
        self._block.arguments.append(argument)
        return argument

    def create_constant(self, name: str, tensor: Tensor) -> Constant:
        constant = Constant(name=name, type=tensor.type, tensor=tensor)
        self.function.constants.append(constant)
        return constant

    def create_instruction(
        self,
        op_type: str,
        operands: Sequence[Value | None],
        attributes: dict[str, Any] | None = None,
        *,
        name: str = "",
        output_names: Sequence[str] = (),
    ) -> Instruction:
        """Append an instruction with one result per entry of ``output_names``.

        Empty output names (omitted optional outputs) still get a result slot so that
        result indices match the source node's output positions.
        """
        inst = Instruction(
            op_type=op_type,
            name=name or self._fresh_name(op_type.lower()),
            operands=tuple(operands),
            attributes=dict(attributes or {}),
        )
        for index, output_name in enumerate(output_names):
            result_type = self.value_types.get(output_name) if output_name else None
            inst.results.append(
                Result(name=output_name, type=result_type, producer=inst, index=index)
            )
        self._block.instructions.append(inst)
        return inst

    def create_return(self, operands: Sequence[Value | None]) -> Instruction:
        return self.create_instruction("Return", operands, name=self._fresh_name("return"))

    @contextmanager
    def nested_block(self, owner: Instruction, role: str) -> Iterator[BasicBlock]:
        """Open a block owned by ``owner`` and make it the insertion point."""
        if role in owner.blocks:
            raise ValueError(f"Instruction '{owner.name}' already has a '{role}' block")
        block = BasicBlock(name=f"{owner.name}.{role}")
        owner.blocks[role] = block
        saved = self._block
        self._block = block
        try:
            yield block
        finally:
            self._block = saved

    @contextmanager
    def type_hints(self, value_types: Mapping[str, Type]) -> Iterator[None]:
        """Layer additional name-to-type hints for the duration of a subgraph."""
        saved = self.value_types
        self.value_types = saved.new_child(dict(value_types))
        try:
            yield
        finally:
            self.value_types = saved
