__docformat__ = "restructuredtext"
__version__ = "2026.1.0"
__all__ = [
    "ConversionFailed",
    "ConversionResult",
    "ConvertOptions",
    "Diagnostic",
    "ErrorKind",
    "GraphConverter",
    "OnnxFrontend",
    "convert",
    "convert_buffers",
    "convert_files",
    "convert_models",
]

from onnxfront._onnxfront import (
    OnnxFrontend,
    convert,
    convert_buffers,
    convert_files,
    convert_models,
)
from onnxfront.errors import ConversionFailed, Diagnostic, ErrorKind
from onnxfront.options import ConvertOptions
from onnxfront.parse import ConversionResult, GraphConverter
