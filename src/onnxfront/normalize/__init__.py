"""ONNX model loading, normalization and inspection."""

__docformat__ = "restructuredtext"
__all__ = [
    "collect_value_types",
    "extract_onnx_opset_version",
    "get_onnx_initializers",
    "iter_subgraphs",
    "load_and_preprocess_onnx_model",
    "load_onnx_model",
    "node_label",
]

from onnxfront.normalize.normalize import load_and_preprocess_onnx_model, load_onnx_model
from onnxfront.normalize.utils import (
    collect_value_types,
    extract_onnx_opset_version,
    get_onnx_initializers,
    iter_subgraphs,
    node_label,
)
