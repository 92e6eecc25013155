"""Leaf components of the ONNX frontend.

Attribute access, lexical scopes, and type/tensor materialization.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "AttrKind",
    "AttrValue",
    "OnnxAttrs",
    "Scope",
    "ScopeTree",
    "materialize_tensor",
    "resolve_element_type",
    "resolve_value_type",
    "tensor_from_values",
]

from onnxfront.frontend.attrs import AttrKind, AttrValue, OnnxAttrs
from onnxfront.frontend.materialize import (
    materialize_tensor,
    resolve_element_type,
    resolve_value_type,
    tensor_from_values,
)
from onnxfront.frontend.scope import Scope, ScopeTree
