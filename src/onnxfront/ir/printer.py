"""Textual dump of IR functions."""

__docformat__ = "restructuredtext"
__all__ = ["format_function"]

from typing import Any

from onnxfront.ir.tensor import Tensor
from onnxfront.ir.values import BasicBlock, Function, Value


def _format_value(value: Value | None) -> str:
    if value is None:
        return "<none>"
    return f"%{value.name}" if value.name else "%<anon>"


def _format_attribute(value: Any) -> str:
    if isinstance(value, Tensor):
        return f"tensor<{value.type}>"
    if isinstance(value, str):
        return repr(value)
    return str(value)


def _format_block(block: BasicBlock, indent: int, lines: list[str]) -> None:
    pad = "  " * indent
    args = ", ".join(f"%{arg.name}: {arg.type or '?'}" for arg in block.arguments)
    lines.append(f"{pad}{block.name}({args}):")
    for inst in block.instructions:
        operands = ", ".join(_format_value(operand) for operand in inst.operands)
        attrs = ""
        if inst.attributes:
            attrs = (
                " {"
                + ", ".join(f"{k}={_format_attribute(v)}" for k, v in inst.attributes.items())
                + "}"
            )
        if inst.results:
            outs = ", ".join(_format_value(result) for result in inst.results) + " = "
        else:
            outs = ""
        lines.append(f"{pad}  {outs}{inst.op_type}({operands}){attrs}")
        for nested in inst.blocks.values():
            _format_block(nested, indent + 2, lines)


def format_function(function: Function) -> str:
    """Render a function as readable text.

    :param function: Converted IR function
    :return: Multi-line text, one instruction per line
    """
    lines = [f"function {function.name}"]
    for constant in function.constants:
        lines.append(f"  const %{constant.name}: {constant.type}")
    _format_block(function.body, 1, lines)
    return "\n".join(lines)
