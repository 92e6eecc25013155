"""Operator converters.

Converter registry and the default ONNX operator catalog.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "Converter",
    "ConverterRegistry",
    "build_default_registry",
    "get_default_registry",
]

from functools import cache

from onnxfront.converters._constant import register_constant_converters
from onnxfront.converters._elementwise import register_elementwise_converters
from onnxfront.converters._nn import register_nn_converters
from onnxfront.converters._registry import Converter, ConverterRegistry
from onnxfront.converters._tensor import register_tensor_converters


def build_default_registry() -> ConverterRegistry:
    """Build a fresh, unfrozen registry holding the default catalog.

    :return: Registry that callers may extend before freezing
    """
    registry = ConverterRegistry()
    register_elementwise_converters(registry)
    register_nn_converters(registry)
    register_tensor_converters(registry)
    register_constant_converters(registry)
    return registry


@cache
def get_default_registry() -> ConverterRegistry:
    """Shared, frozen default registry (built on first use)."""
    return build_default_registry().freeze()
