"""Shared pytest fixtures for the onnxfront unit tests.

This module provides:
- Model fixtures (in-memory ModelProto and saved ``.onnx`` files)
- A fresh builder and an empty scope tree
- Helpers for building single nodes and their attribute bags
"""

import onnx.helper as onnx_helper
import pytest

from onnxfront.frontend import OnnxAttrs, ScopeTree
from onnxfront.ir import IRBuilder
from tests.test_units.test_onnxfront.fixtures.synthetic_models import SyntheticModels

# ===== In-memory Model Fixtures =====


@pytest.fixture
def relu_model():
    return SyntheticModels.create_relu_model()


@pytest.fixture
def add_model():
    return SyntheticModels.create_add_model()


@pytest.fixture
def mlp_model():
    return SyntheticModels.create_mlp_model()


@pytest.fixture
def unsupported_model():
    return SyntheticModels.create_unsupported_model()


@pytest.fixture
def loop_model():
    return SyntheticModels.create_loop_model()


@pytest.fixture
def if_model():
    return SyntheticModels.create_if_model()


# ===== Saved Model Fixtures =====


@pytest.fixture
def mlp_model_path(save_model, mlp_model):
    """Create and save the MLP model."""
    return save_model(mlp_model, "mlp.onnx")


@pytest.fixture
def relu_model_path(save_model, relu_model):
    """Create and save the Relu model."""
    return save_model(relu_model, "relu.onnx")


# ===== IR Fixtures =====


@pytest.fixture
def builder():
    return IRBuilder("test")


@pytest.fixture
def scope_tree():
    return ScopeTree()


@pytest.fixture
def make_attrs():
    """Build the attribute bag of a throwaway node.

    Usage: ``make_attrs("Conv", kernel_shape=[3, 3])``
    """

    def _make(op_type="Test", **attributes):
        node = onnx_helper.make_node(op_type, [], [], **attributes)
        return OnnxAttrs(node)

    return _make
