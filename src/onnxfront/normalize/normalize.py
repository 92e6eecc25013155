"""ONNX model loading and preprocessing."""

__docformat__ = "restructuredtext"
__all__ = ["load_and_preprocess_onnx_model", "load_onnx_model"]

import warnings
from pathlib import Path

import onnx
from google.protobuf.message import DecodeError
from onnx import ModelProto, version_converter

from onnxfront.options import RECOMMENDED_OPSET

MIN_TESTED_OPSET = 13  # Lowest opset the default converters are exercised with
MAX_TESTED_OPSET = 21  # Highest tested opset

ModelSource = str | Path | bytes | ModelProto


def load_onnx_model(source: ModelSource) -> ModelProto:
    """Load a model from a file path, a serialized buffer, or a decoded proto.

    A decoded proto is copied so that preprocessing never mutates the caller's model.

    :param source: Path to an ONNX file, serialized model bytes, or a ModelProto
    :return: Model owned by the caller of this function
    :raises ValueError: If a buffer does not decode as an ONNX model
    """
    if isinstance(source, ModelProto):
        model = ModelProto()
        model.CopyFrom(source)
        return model
    if isinstance(source, (bytes, bytearray, memoryview)):
        try:
            return onnx.load_model_from_string(bytes(source))
        except DecodeError as error:
            raise ValueError(f"Buffer is not a serialized ONNX model: {error}") from error
    return onnx.load(str(source))


def _clear_docstrings(model: ModelProto) -> ModelProto:
    """Clear docstrings of the graph and its nodes.

    :param model: Input ONNX model
    :return: Model with cleared docstrings
    """
    model.graph.doc_string = ""
    for node in model.graph.node:
        node.doc_string = ""
    return model


def _check_model(model: ModelProto, strict: bool = False) -> None:
    """Check ONNX model validity using onnx.checker.

    A failed check warns unless ``strict`` is set.

    :param model: Input ONNX model
    :param strict: Raise instead of warning
    :raises ValueError: If ``strict`` and the model is invalid
    """
    try:
        onnx.checker.check_model(model)
    except (onnx.checker.ValidationError, ValueError, AttributeError, TypeError) as error:
        if strict:
            raise ValueError(f"Invalid ONNX model: {error}") from error
        warnings.warn(f"Invalid ONNX model: {error}", UserWarning, stacklevel=2)


def _convert_version(
    model: ModelProto,
    target_opset: int = RECOMMENDED_OPSET,
    warn_on_diff: bool = True,
) -> ModelProto:
    """Convert ONNX model to specified opset version.

    :param model: Input ONNX model
    :param target_opset: Target opset version
    :param warn_on_diff: Warn if target is outside the tested range
    :return: Converted model, or the input model if conversion failed
    """
    current_opset = model.opset_import[0].version if model.opset_import else 0

    if warn_on_diff and not (MIN_TESTED_OPSET <= target_opset <= MAX_TESTED_OPSET):
        warnings.warn(
            f"Target opset {target_opset} is outside "
            f"tested range [{MIN_TESTED_OPSET}, {MAX_TESTED_OPSET}]. "
            f"Recommended opset is {RECOMMENDED_OPSET}.",
            UserWarning,
            stacklevel=2,
        )

    if current_opset != target_opset:
        try:
            model = version_converter.convert_version(model, target_opset)
        except (ValueError, RuntimeError, AttributeError) as error:
            warnings.warn(
                f"Version conversion failed "
                f"from opset {current_opset} to {target_opset}: {error}. "
                f"Keeping original opset version.",
                UserWarning,
                stacklevel=2,
            )

    return model


def _infer_shapes(model: ModelProto) -> ModelProto:
    """Run ONNX shape inference, keeping the model unchanged if it fails.

    :param model: Input ONNX model
    :return: Model with inferred ``value_info`` (if successful)
    """
    try:
        model = onnx.shape_inference.infer_shapes(model)
    except (ValueError, RuntimeError, AttributeError) as error:
        warnings.warn(f"Shape inference failed: {error}", UserWarning, stacklevel=2)
    return model


def load_and_preprocess_onnx_model(
    source: ModelSource,
    target_opset: int | None = None,
    infer_shapes: bool = True,
    check_model: bool = True,
    clear_docstrings: bool = True,
    strict_check: bool = False,
) -> ModelProto:
    """Load an ONNX model and prepare it for conversion.

    Preprocessing steps:
    1. Load model from a path, a buffer, or a copy of a decoded proto
    2. Validate with ONNX checker (if enabled; failures warn unless strict)
    3. Convert to target opset version (if specified)
    4. Run shape inference (if enabled)
    5. Clear docstrings (if enabled)

    Constant nodes are kept as nodes; they become IR constants during conversion.

    :param source: Path, serialized bytes, or ModelProto
    :param target_opset: Target opset version (None = keep original)
    :param infer_shapes: Whether to run shape inference
    :param check_model: Whether to validate model with onnx.checker
    :param clear_docstrings: Whether to clear docstrings
    :param strict_check: Raise ValueError instead of warning when the checker fails
    :return: Preprocessed model
    """
    model = load_onnx_model(source)

    if check_model:
        _check_model(model, strict=strict_check)

    if target_opset is not None:
        model = _convert_version(model, target_opset=target_opset)
        if check_model:
            _check_model(model, strict=strict_check)

    if infer_shapes:
        model = _infer_shapes(model)

    if clear_docstrings:
        model = _clear_docstrings(model)

    return model
