"""Converter registry mapping ONNX operator kinds to converter functions.

Provides versioned dispatch: an operator kind may have several converters, each
valid from the opset version it was registered with.
"""

__docformat__ = "restructuredtext"
__all__ = ["Converter", "ConverterRegistry"]

import bisect
from collections.abc import Callable

from onnx import NodeProto

from onnxfront.errors import UnsupportedOperator
from onnxfront.frontend.attrs import OnnxAttrs
from onnxfront.ir import IRBuilder, Value

# Converter type: builds IR for one node from its resolved inputs and attributes
Converter = Callable[[IRBuilder, NodeProto, list[Value | None], OnnxAttrs], list[Value]]


class ConverterRegistry:
    """Name-to-converter table, populated once and then frozen."""

    def __init__(self) -> None:
        # op_type -> registrations sorted by since_version
        self._converters: dict[str, list[tuple[int, Converter]]] = {}
        self._frozen = False

    def __contains__(self, op_type: object) -> bool:
        return op_type in self._converters

    def __len__(self) -> int:
        return len(self._converters)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def op_types(self) -> list[str]:
        return sorted(self._converters)

    def versions(self, op_type: str) -> list[int]:
        """Opset versions ``op_type`` has a dedicated converter for."""
        return [version for version, _ in self._converters.get(op_type, [])]

    def register(self, op_type: str, converter: Converter, since_version: int = 1) -> None:
        """Register ``converter`` for ``op_type`` from opset ``since_version`` on.

        :param op_type: ONNX operator type (e.g., "Conv", "Relu")
        :param converter: Converter function
        :param since_version: First opset version the converter applies to
        """
        if self._frozen:
            raise RuntimeError(f"Cannot register '{op_type}': registry is frozen")
        entries = self._converters.setdefault(op_type, [])
        if any(version == since_version for version, _ in entries):
            raise ValueError(f"'{op_type}' already has a converter since opset {since_version}")
        bisect.insort(entries, (since_version, converter), key=lambda entry: entry[0])

    def freeze(self) -> "ConverterRegistry":
        self._frozen = True
        return self

    def lookup(self, op_type: str, opset_version: int | None = None) -> Converter:
        """Get the converter for ``op_type`` at ``opset_version``.

        :param op_type: ONNX operator type
        :param opset_version: Model opset; None selects the newest converter
        :return: Converter function
        :raises UnsupportedOperator: If no converter applies
        """
        entries = self._converters.get(op_type)
        if not entries:
            raise UnsupportedOperator(op_type)
        if opset_version is None:
            return entries[-1][1]
        candidates = [conv for version, conv in entries if version <= opset_version]
        if not candidates:
            raise UnsupportedOperator(op_type, opset_version)
        return candidates[-1]
