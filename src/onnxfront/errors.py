"""Conversion error taxonomy and diagnostic records."""

__docformat__ = "restructuredtext"
__all__ = [
    "AttributeTypeMismatch",
    "ConversionError",
    "ConversionFailed",
    "Diagnostic",
    "DuplicateBinding",
    "ErrorKind",
    "InvalidAttributeValue",
    "InvalidNodeArity",
    "MalformedTensorPayload",
    "MissingAttribute",
    "NameNotFound",
    "UnresolvedInput",
    "UnsupportedElementType",
    "UnsupportedOperator",
]

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


class ErrorKind(Enum):
    """Kinds of per-node conversion failures."""

    NAME_NOT_FOUND = "NameNotFound"
    DUPLICATE_BINDING = "DuplicateBinding"
    ATTRIBUTE_TYPE_MISMATCH = "AttributeTypeMismatch"
    MISSING_ATTRIBUTE = "MissingAttribute"
    UNSUPPORTED_ELEMENT_TYPE = "UnsupportedElementType"
    MALFORMED_TENSOR_PAYLOAD = "MalformedTensorPayload"
    UNSUPPORTED_OPERATOR = "UnsupportedOperator"
    UNRESOLVED_INPUT = "UnresolvedInput"
    INVALID_NODE_ARITY = "InvalidNodeArity"
    INVALID_ATTRIBUTE_VALUE = "InvalidAttributeValue"


class ConversionError(Exception):
    """Base class of every recoverable conversion failure."""

    kind: ErrorKind


class NameNotFound(ConversionError, LookupError):
    kind = ErrorKind.NAME_NOT_FOUND

    def __init__(self, name: str):
        super().__init__(f"Name '{name}' is not bound in any enclosing scope")
        self.name = name


class DuplicateBinding(ConversionError, ValueError):
    kind = ErrorKind.DUPLICATE_BINDING

    def __init__(self, name: str):
        super().__init__(f"Name '{name}' is already bound in this scope")
        self.name = name


class AttributeTypeMismatch(ConversionError, TypeError):
    kind = ErrorKind.ATTRIBUTE_TYPE_MISMATCH


class MissingAttribute(ConversionError, ValueError):
    kind = ErrorKind.MISSING_ATTRIBUTE


class InvalidAttributeValue(ConversionError, ValueError):
    kind = ErrorKind.INVALID_ATTRIBUTE_VALUE


class UnsupportedElementType(ConversionError, NotImplementedError):
    kind = ErrorKind.UNSUPPORTED_ELEMENT_TYPE


class MalformedTensorPayload(ConversionError, ValueError):
    kind = ErrorKind.MALFORMED_TENSOR_PAYLOAD


class UnsupportedOperator(ConversionError, NotImplementedError):
    kind = ErrorKind.UNSUPPORTED_OPERATOR

    def __init__(self, op_type: str, opset_version: int | None = None):
        if opset_version is None:
            message = f"Unsupported operator: {op_type}"
        else:
            message = f"Unsupported operator: {op_type} (opset {opset_version})"
        super().__init__(message)
        self.op_type = op_type
        self.opset_version = opset_version


class UnresolvedInput(ConversionError, LookupError):
    kind = ErrorKind.UNRESOLVED_INPUT

    def __init__(self, names: Sequence[str]):
        quoted = ", ".join(f"'{name}'" for name in names)
        super().__init__(f"Unresolved input(s): {quoted}")
        self.names = tuple(names)


class InvalidNodeArity(ConversionError, ValueError):
    kind = ErrorKind.INVALID_NODE_ARITY


@dataclass(frozen=True)
class Diagnostic:
    """One accumulated conversion failure.

    :param graph: Path of the graph the failure occurred in (e.g. "main/loop_0.body")
    :param node: Node name, or a synthetic label for inputs/initializers/outputs
    :param op_type: ONNX operator type ("" for non-node contexts)
    :param kind: Error kind
    :param message: Human-readable description
    """

    graph: str
    node: str
    op_type: str
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        where = f"{self.node} ({self.op_type})" if self.op_type else self.node
        return f"[{self.kind.value}] {self.graph}: {where}: {self.message}"


class ConversionFailed(RuntimeError):
    """Raised by ``ConversionResult.raise_for_errors`` when diagnostics exist."""

    def __init__(self, diagnostics: Sequence[Diagnostic]):
        self.diagnostics = tuple(diagnostics)
        lines = [f"Conversion failed with {len(self.diagnostics)} error(s):"]
        lines.extend(f"  {diagnostic}" for diagnostic in self.diagnostics)
        super().__init__("\n".join(lines))
