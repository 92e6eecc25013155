"""Tests for the graph converter driver on flat (control-flow free) graphs.

Test Coverage:
- TestSuccessfulConversion: placeholders, initializers, outputs, state
- TestUnsupportedOperators: accumulation, placeholders, reporting
- TestNodeFailures: unresolved inputs, duplicate bindings, bad initializers
- TestOptions: batch size override and function naming
"""

import onnx
import onnx.helper as onnx_helper
import pytest

from onnxfront import ConversionFailed, ConvertOptions, ErrorKind, GraphConverter
from onnxfront.frontend import ScopeTree
from onnxfront.ir import Argument, Constant, DataType, Result, Type
from onnxfront.parse import ConverterState
from tests.test_units.test_onnxfront.fixtures.synthetic_models import SyntheticModels


class TestSuccessfulConversion:
    """Test graphs that convert without diagnostics."""

    def test_relu_scenario(self, relu_model):
        """Test ``y = Relu(x)`` with a dynamic input and one initializer."""
        scopes = ScopeTree()
        converter = GraphConverter()
        result = converter.convert_model(relu_model, scopes=scopes)

        assert result.success
        assert result.diagnostics == ()
        assert converter.state is ConverterState.SUCCESS

        root = scopes.root
        assert root.local_names() == ["x", "w", "y"]
        produced = [name for name in root.local_names() if isinstance(root.find(name), Result)]
        assert produced == ["y"]

        function = result.function
        (x,) = function.arguments
        assert isinstance(x, Argument)
        assert x.type == Type(DataType.FLOAT32, None)
        (w,) = function.constants
        assert isinstance(w, Constant)
        assert w.tensor.tolist() == [0.5, -1.0, 2.0]

    def test_outputs_returned(self, relu_model):
        """Test that graph outputs are emitted as the block terminator."""
        function = GraphConverter().convert_model(relu_model).raise_for_errors()
        relu, ret = function.body.instructions
        assert relu.op_type == "Relu"
        assert ret.op_type == "Return"
        assert function.outputs == (relu.results[0],)
        assert function.body.terminator is ret

    def test_function_name_defaults_to_graph(self, relu_model):
        """Test the default function name."""
        assert GraphConverter().convert_model(relu_model).function.name == "ReluModel"

    def test_mlp(self, mlp_model):
        """Test a small multi-layer model."""
        function = GraphConverter().convert_model(mlp_model).raise_for_errors()
        ops = [inst.op_type for inst in function.body.instructions]
        assert ops == ["Gemm", "Relu", "Gemm", "Return"]
        assert len(function.constants) == 4
        assert function.body.instructions[0].attributes["transB"] == 1

    def test_constant_node(self):
        """Test that a Constant node feeds its consumer as an IR constant."""
        model = SyntheticModels.create_constant_model()
        function = GraphConverter().convert_model(model).raise_for_errors()
        mul = function.body.instructions[0]
        assert mul.op_type == "Mul"
        assert isinstance(mul.operands[1], Constant)
        assert mul.operands[1].tensor.tolist() == [3.0, 4.0]

    def test_conv_kernel_from_initializer(self):
        """Test that an initializer's static shape reaches the Conv converter."""
        model = SyntheticModels.create_conv_model()
        function = GraphConverter().convert_model(model).raise_for_errors()
        assert function.body.instructions[0].attributes["kernel_shape"] == (3, 3)

    def test_initializer_declared_as_input(self):
        """Test that an initializer also listed as an input becomes a constant only."""
        model = SyntheticModels.create_add_model()
        model.graph.input.append(
            onnx_helper.make_tensor_value_info("b", onnx.TensorProto.FLOAT, [3])
        )
        function = GraphConverter().convert_model(model).raise_for_errors()
        assert [arg.name for arg in function.arguments] == ["x"]
        assert [constant.name for constant in function.constants] == ["b"]

    def test_converter_reused(self, relu_model, mlp_model):
        """Test that one converter instance converts several models in turn."""
        converter = GraphConverter()
        first = converter.convert_model(relu_model)
        second = converter.convert_model(mlp_model)
        assert first.success and second.success
        assert first.function is not second.function

    def test_initial_state(self):
        """Test the state before any conversion."""
        assert GraphConverter().state is ConverterState.IDLE


class TestUnsupportedOperators:
    """Test operators without a converter."""

    def test_foo_scenario(self, unsupported_model):
        """Test that ``z = Foo(x)`` yields exactly one UnsupportedOperator error."""
        converter = GraphConverter()
        result = converter.convert_model(unsupported_model)

        assert not result.success
        assert result.function is None
        assert converter.state is ConverterState.FAILED
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind is ErrorKind.UNSUPPORTED_OPERATOR
        assert diagnostic.node == "z"
        assert diagnostic.op_type == "Foo"
        assert result.unsupported_operators() == ["Foo"]

    def test_without_placeholders(self, unsupported_model):
        """Test that without placeholders, consumers of the unsupported node fail too."""
        converter = GraphConverter(options=ConvertOptions(placeholder_unsupported=False))
        result = converter.convert_model(unsupported_model)
        kinds = [diagnostic.kind for diagnostic in result.diagnostics]
        assert kinds == [
            ErrorKind.UNSUPPORTED_OPERATOR,
            ErrorKind.UNRESOLVED_INPUT,
            ErrorKind.NAME_NOT_FOUND,
        ]
        assert result.diagnostics[1].node == "relu_z"

    def test_placeholder_instruction(self, unsupported_model):
        """Test that the placeholder is a Dummy instruction remembering the op type."""
        scopes = ScopeTree()
        GraphConverter().convert_model(unsupported_model, scopes=scopes)
        z = scopes.root.find("z")
        assert isinstance(z, Result)
        assert z.producer.op_type == "Dummy"
        assert z.producer.attributes["op_type"] == "Foo"

    def test_every_occurrence_reported(self):
        """Test that all unsupported nodes are reported in graph order."""
        model = SyntheticModels.create_many_unsupported_model()
        result = GraphConverter().convert_model(model)
        assert [diagnostic.node for diagnostic in result.diagnostics] == [
            "foo_1",
            "bar",
            "foo_2",
        ]
        assert result.unsupported_operators() == ["Foo", "Bar"]

    def test_raise_for_errors(self, unsupported_model):
        """Test that raise_for_errors lists every diagnostic."""
        result = GraphConverter().convert_model(unsupported_model)
        with pytest.raises(ConversionFailed) as info:
            result.raise_for_errors()
        message = str(info.value)
        assert "1 error" in message
        assert "[UnsupportedOperator] UnsupportedModel: z (Foo)" in message
        assert info.value.diagnostics == result.diagnostics

    def test_custom_domain(self, relu_model):
        """Test that nodes of other domains are unsupported even if the name is known."""
        relu_model.graph.node[0].domain = "com.example"
        result = GraphConverter().convert_model(relu_model)
        (diagnostic,) = result.diagnostics
        assert "com.example.Relu" in diagnostic.message

    def test_opset_gated(self):
        """Test that operators newer than the model opset are unsupported."""
        x = onnx_helper.make_tensor_value_info("x", onnx.TensorProto.FLOAT, [2])
        y = onnx_helper.make_tensor_value_info("y", onnx.TensorProto.FLOAT, [2])
        node = onnx_helper.make_node("Gelu", ["x"], ["y"], name="gelu")
        graph = onnx_helper.make_graph([node], "GeluModel", [x], [y])
        result = GraphConverter().convert_graph(graph, opset_version=17)
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind is ErrorKind.UNSUPPORTED_OPERATOR
        assert "opset 17" in diagnostic.message


class TestNodeFailures:
    """Test failures other than unsupported operators."""

    def test_unresolved_inputs_named(self):
        """Test that one diagnostic names every missing input of a node."""
        model = SyntheticModels.create_dangling_input_model()
        result = GraphConverter().convert_model(model)
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind is ErrorKind.UNRESOLVED_INPUT
        assert diagnostic.node == "add"
        assert "'p'" in diagnostic.message
        assert "'q'" in diagnostic.message

    def test_duplicate_binding(self):
        """Test that rebinding an output name in the same graph is reported."""
        model = SyntheticModels.create_duplicate_output_model()
        result = GraphConverter().convert_model(model)
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind is ErrorKind.DUPLICATE_BINDING
        assert diagnostic.node == "second"

    def test_converter_error_recorded(self, relu_model):
        """Test that a failing converter is recorded and the walk continues."""
        node = onnx_helper.make_node("Concat", ["x", "x"], ["cat"], name="concat")
        relu_model.graph.node.insert(0, node)
        result = GraphConverter().convert_model(relu_model)
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind is ErrorKind.MISSING_ATTRIBUTE
        assert diagnostic.node == "concat"

    def test_malformed_initializer(self, relu_model):
        """Test that an initializer with a truncated payload is reported."""
        relu_model.graph.initializer[0].float_data.pop()
        result = GraphConverter().convert_model(relu_model)
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind is ErrorKind.MALFORMED_TENSOR_PAYLOAD
        assert diagnostic.node == "initializer 'w'"

    def test_unsupported_input_type(self, relu_model):
        """Test that a string placeholder is reported."""
        relu_model.graph.input[0].type.tensor_type.elem_type = onnx.TensorProto.STRING
        result = GraphConverter().convert_model(relu_model)
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind is ErrorKind.UNSUPPORTED_ELEMENT_TYPE
        assert diagnostic.node == "input 'x'"

    def test_diagnostics_keep_order(self):
        """Test that failures from different nodes are kept in graph order."""
        model = SyntheticModels.create_dangling_input_model()
        model.graph.node.append(onnx_helper.make_node("Foo", ["y"], ["w"], name="foo"))
        result = GraphConverter().convert_model(model)
        assert [diagnostic.kind for diagnostic in result.diagnostics] == [
            ErrorKind.UNRESOLVED_INPUT,
            ErrorKind.UNSUPPORTED_OPERATOR,
        ]

    def test_undecodable_string_attribute(self):
        """Test that a non-UTF-8 attribute fails its node only."""
        x = onnx_helper.make_tensor_value_info("x", onnx.TensorProto.FLOAT, [2])
        nodes = [
            onnx_helper.make_node("Gelu", ["x"], ["g"], name="gelu", approximate=b"\xff\xfe"),
            onnx_helper.make_node("Foo", ["x"], ["z"], name="foo"),
            onnx_helper.make_node("Relu", ["x"], ["r"], name="relu"),
        ]
        graph = onnx_helper.make_graph(nodes, "BadString", [x], [])
        scopes = ScopeTree()
        result = GraphConverter().convert_graph(graph, opset_version=20, scopes=scopes)
        assert [(d.node, d.kind) for d in result.diagnostics] == [
            ("gelu", ErrorKind.INVALID_ATTRIBUTE_VALUE),
            ("foo", ErrorKind.UNSUPPORTED_OPERATOR),
        ]
        assert not scopes.root.contains("g")
        assert scopes.root.contains("r")

    def test_missing_opset(self, relu_model):
        """Test that a model without a default-domain opset is rejected."""
        del relu_model.opset_import[:]
        with pytest.raises(ValueError):
            GraphConverter().convert_model(relu_model)


class TestOptions:
    """Test conversion options."""

    def test_batch_size_override(self, add_model):
        """Test that a dynamic leading axis takes the configured batch size."""
        converter = GraphConverter(options=ConvertOptions(batch_size=4))
        function = converter.convert_model(add_model).raise_for_errors()
        assert function.arguments[0].type == Type(DataType.FLOAT32, (4, 3))

    def test_batch_size_keeps_static_axis(self, mlp_model):
        """Test that a static leading axis is left alone."""
        converter = GraphConverter(options=ConvertOptions(batch_size=8))
        function = converter.convert_model(mlp_model).raise_for_errors()
        assert function.arguments[0].type == Type(DataType.FLOAT32, (1, 3))

    def test_function_name_option(self, relu_model):
        """Test that function_name overrides the graph name."""
        converter = GraphConverter(options=ConvertOptions(function_name="forward"))
        assert converter.convert_model(relu_model).function.name == "forward"

    @pytest.mark.parametrize("field", ["batch_size", "target_opset"])
    def test_invalid_options(self, field):
        """Test that non-positive sizes are rejected."""
        with pytest.raises(ValueError):
            ConvertOptions(**{field: 0})
