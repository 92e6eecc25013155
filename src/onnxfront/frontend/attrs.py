"""Type-checked access to ONNX node attributes."""

__docformat__ = "restructuredtext"
__all__ = ["AttrKind", "AttrValue", "OnnxAttrs"]

from collections.abc import Callable
from enum import Enum
from typing import Any, NamedTuple

from onnx import AttributeProto, GraphProto, NodeProto, TensorProto

from onnxfront.errors import AttributeTypeMismatch, InvalidAttributeValue, MissingAttribute


class AttrKind(Enum):
    """Attribute tags, numbered as ``onnx.AttributeProto.AttributeType``."""

    FLOAT = 1
    INT = 2
    STRING = 3
    TENSOR = 4
    GRAPH = 5
    FLOATS = 6
    INTS = 7
    STRINGS = 8
    TENSORS = 9
    GRAPHS = 10


class AttrValue(NamedTuple):
    """Tagged attribute value; ``kind`` is None for tags the frontend cannot read."""

    kind: AttrKind | None
    value: Any


def _decode_string(attr: AttributeProto, raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as error:
        raise InvalidAttributeValue(
            f"Attribute '{attr.name}' holds bytes that are not valid UTF-8"
        ) from error


# Attribute type extractors
EXTRACT_ATTR_MAP: dict[int, Callable[[AttributeProto], Any]] = {
    1: lambda x: x.f,  # FLOAT
    2: lambda x: x.i,  # INT
    3: lambda x: _decode_string(x, x.s),  # STRING
    4: lambda x: x.t,  # TENSOR
    5: lambda x: x.g,  # GRAPH
    6: lambda x: tuple(x.floats),  # FLOATS
    7: lambda x: tuple(x.ints),  # INTS
    8: lambda x: tuple(_decode_string(x, s) for s in x.strings),  # STRINGS
    9: lambda x: tuple(x.tensors),  # TENSORS
    10: lambda x: tuple(x.graphs),  # GRAPHS
}


def _scan_attrs(attrs) -> dict[str, AttrValue]:
    """Tag every attribute of a node.

    :param attrs: ONNX node attributes
    :return: Mapping from attribute name to tagged value
    """
    result: dict[str, AttrValue] = {}
    for attr in attrs:
        extract = EXTRACT_ATTR_MAP.get(attr.type)
        if extract is None:
            # SPARSE_TENSOR(S), TYPE_PROTO(S), UNDEFINED
            result[attr.name] = AttrValue(None, attr)
        else:
            result[attr.name] = AttrValue(AttrKind(attr.type), extract(attr))
    return result


class OnnxAttrs:
    """Read-only attribute bag of a single node.

    Absent keys read as the caller's default; present keys must carry exactly the
    requested tag, there is no coercion between tags.
    """

    def __init__(self, node: NodeProto):
        """Scan the attribute bag of ``node``.

        :raises InvalidAttributeValue: If a string attribute is not valid UTF-8
        """
        self.op_type = node.op_type
        self.node_name = node.name
        self._attrs = _scan_attrs(node.attribute)

    def __contains__(self, key: str) -> bool:
        return key in self._attrs

    def __len__(self) -> int:
        return len(self._attrs)

    def keys(self) -> list[str]:
        return list(self._attrs)

    def kind_of(self, key: str) -> AttrKind | None:
        """Stored tag of ``key``; None if absent or of an unreadable tag."""
        entry = self._attrs.get(key)
        return None if entry is None else entry.kind

    def get(self, key: str, kind: AttrKind, default: Any = None) -> Any:
        """Read ``key`` as ``kind``.

        :param key: Attribute name
        :param kind: Expected tag
        :param default: Value returned when the attribute is absent
        :return: Attribute value or ``default``
        :raises AttributeTypeMismatch: If the attribute is stored under another tag
        """
        entry = self._attrs.get(key)
        if entry is None:
            return default
        if entry.kind is not kind:
            stored = "unsupported" if entry.kind is None else entry.kind.name
            raise AttributeTypeMismatch(
                f"{self.op_type} attribute '{key}' is {stored}, expected {kind.name}"
            )
        return entry.value

    def require(self, key: str, kind: AttrKind) -> Any:
        """Read ``key`` as ``kind``, failing if it is absent."""
        if key not in self._attrs:
            raise MissingAttribute(f"{self.op_type} attribute '{key}' is required")
        return self.get(key, kind)

    def get_int(self, key: str, default: int | None = None) -> int | None:
        return self.get(key, AttrKind.INT, default)  # type: ignore[no-any-return]

    def get_float(self, key: str, default: float | None = None) -> float | None:
        return self.get(key, AttrKind.FLOAT, default)  # type: ignore[no-any-return]

    def get_string(self, key: str, default: str | None = None) -> str | None:
        return self.get(key, AttrKind.STRING, default)  # type: ignore[no-any-return]

    def get_tensor(self, key: str) -> TensorProto | None:
        return self.get(key, AttrKind.TENSOR)  # type: ignore[no-any-return]

    def get_graph(self, key: str) -> GraphProto | None:
        return self.get(key, AttrKind.GRAPH)  # type: ignore[no-any-return]

    def get_ints(self, key: str, default: tuple[int, ...] | None = None) -> tuple[int, ...] | None:
        return self.get(key, AttrKind.INTS, default)  # type: ignore[no-any-return]

    def get_floats(
        self, key: str, default: tuple[float, ...] | None = None
    ) -> tuple[float, ...] | None:
        return self.get(key, AttrKind.FLOATS, default)  # type: ignore[no-any-return]

    def get_strings(
        self, key: str, default: tuple[str, ...] | None = None
    ) -> tuple[str, ...] | None:
        return self.get(key, AttrKind.STRINGS, default)  # type: ignore[no-any-return]
