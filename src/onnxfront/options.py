"""Conversion options."""

__docformat__ = "restructuredtext"
__all__ = ["ConvertOptions", "RECOMMENDED_OPSET"]

from dataclasses import dataclass

# Opset the default converter catalog is tested against
RECOMMENDED_OPSET = 20


@dataclass(frozen=True)
class ConvertOptions:
    """Settings for loading and converting a model.

    :param target_opset: Convert the model to this opset before conversion (None = keep)
    :param infer_shapes: Run ONNX shape inference to enrich result types
    :param check_model: Validate the model with ``onnx.checker``
    :param strict_check: Fail on checker errors instead of warning and converting anyway
    :param batch_size: Replace a dynamic leading axis of graph inputs with this size
    :param placeholder_unsupported: Bind unsupported nodes' outputs to Dummy instructions
        so that their consumers are still checked
    :param function_name: Name of the IR function (default: the graph name)
    :param report_path: Write a CSV operator report to this path
    """

    target_opset: int | None = None
    infer_shapes: bool = True
    check_model: bool = True
    strict_check: bool = False
    batch_size: int | None = None
    placeholder_unsupported: bool = True
    function_name: str | None = None
    report_path: str | None = None

    def __post_init__(self) -> None:
        if self.batch_size is not None and self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.target_opset is not None and self.target_opset < 1:
            raise ValueError(f"target_opset must be positive, got {self.target_opset}")
