"""Pytest configuration and shared fixtures for onnxfront tests."""

import onnx
import pytest


@pytest.fixture
def save_model(tmp_path):
    """Save a ModelProto under ``tmp_path`` and return the file path.

    Usage: ``path = save_model(model, "relu.onnx")``
    """

    def _save(model: onnx.ModelProto, filename: str = "model.onnx") -> str:
        path = tmp_path / filename
        onnx.save(model, str(path))
        return str(path)

    return _save
