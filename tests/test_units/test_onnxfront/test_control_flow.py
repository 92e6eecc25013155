"""Tests for Loop and If conversion: nested blocks, child scopes, capture.

Test Coverage:
- TestLoop: body block, argument types, capture of outer names, visibility
- TestLoopFailures: arity checks and diagnostics inside bodies
- TestIf: branch blocks and capture
"""

import onnx
import onnx.helper as onnx_helper

from onnxfront import ErrorKind, GraphConverter
from onnxfront.frontend import ScopeTree
from onnxfront.ir import Argument, Constant, DataType, Type, format_function
from tests.test_units.test_onnxfront.fixtures.synthetic_models import SyntheticModels


def _loop_instruction(function):
    (loop,) = [inst for inst in function.body.instructions if inst.op_type == "Loop"]
    return loop


class TestLoop:
    """Test successful loop conversion."""

    def test_loop_scenario(self, loop_model):
        """Test that the body resolves outer ``c`` and local ``i``, and ``i`` stays local."""
        scopes = ScopeTree()
        result = GraphConverter().convert_model(loop_model, scopes=scopes)

        assert result.success, result.format_diagnostics()
        root = scopes.root
        assert root.contains("v_final")
        assert not root.contains("i")
        assert not root.contains("shifted")
        assert scopes.live_count == 1

    def test_body_block(self, loop_model):
        """Test that the body becomes a nested block owned by the Loop instruction."""
        function = GraphConverter().convert_model(loop_model).raise_for_errors()
        loop = _loop_instruction(function)
        body = loop.blocks["body"]
        assert body.name == "loop.body"
        assert [arg.name for arg in body.arguments] == ["i", "cond_in", "v_in"]
        assert [inst.op_type for inst in body.instructions] == [
            "Identity",
            "Add",
            "Cast",
            "Add",
            "Return",
        ]
        assert body.terminator is body.instructions[-1]

    def test_body_argument_types(self, loop_model):
        """Test the iteration counter, condition and carried value types."""
        function = GraphConverter().convert_model(loop_model).raise_for_errors()
        i, cond_in, v_in = _loop_instruction(function).blocks["body"].arguments
        assert i.type == Type(DataType.INT64, ())
        assert cond_in.type.data_type is DataType.BOOL
        assert v_in.type == Type(DataType.FLOAT32, (1,))

    def test_body_captures_outer_constant(self, loop_model):
        """Test that the body's Add reads the enclosing graph's constant ``c``."""
        function = GraphConverter().convert_model(loop_model).raise_for_errors()
        add_c = _loop_instruction(function).blocks["body"].instructions[1]
        captured = add_c.operands[1]
        assert isinstance(captured, Constant)
        assert captured in function.constants

    def test_loop_operands(self, loop_model):
        """Test trip count, omitted condition and carried operand."""
        function = GraphConverter().convert_model(loop_model).raise_for_errors()
        trip, cond, carried = _loop_instruction(function).operands
        assert isinstance(trip, Constant)
        assert cond is None
        assert isinstance(carried, Argument)

    def test_loop_outputs_visible(self, loop_model):
        """Test that the loop result is the function output."""
        function = GraphConverter().convert_model(loop_model).raise_for_errors()
        loop = _loop_instruction(function)
        assert function.outputs == (loop.results[0],)

    def test_shadowing(self):
        """Test that a body input may reuse an outer name and takes the carried type."""
        model = SyntheticModels.create_shadowing_loop_model()
        function = GraphConverter().convert_model(model).raise_for_errors()
        loop = _loop_instruction(function)
        body = loop.blocks["body"]
        inner_x = body.arguments[2]
        outer_x = function.arguments[0]
        assert inner_x is not outer_x
        assert inner_x.type == outer_x.type
        neg = body.instructions[1]
        assert neg.operands == (inner_x,)

    def test_walk_reaches_body(self, loop_model):
        """Test that walking the function visits nested instructions."""
        function = GraphConverter().convert_model(loop_model).raise_for_errors()
        ops = [inst.op_type for inst in function.body.walk()]
        assert ops.count("Add") == 2
        assert ops.count("Return") == 2

    def test_printer_shows_nesting(self, loop_model):
        """Test that the text dump shows the body under the loop."""
        function = GraphConverter().convert_model(loop_model).raise_for_errors()
        text = format_function(function)
        assert "loop.body(%i: int64[], %cond_in: bool" in text
        assert "%v_final = Loop(%trip, <none>, %x)" in text

    def test_nested_loops(self, loop_model):
        """Test a loop inside a loop body capturing names two levels up."""
        inner = onnx.GraphProto()
        inner.CopyFrom(loop_model.graph.node[0].attribute[0].g)
        inner.name = "inner_body"

        outer_body_inputs = [
            onnx_helper.make_tensor_value_info("j", onnx.TensorProto.INT64, []),
            onnx_helper.make_tensor_value_info("outer_cond", onnx.TensorProto.BOOL, []),
            onnx_helper.make_tensor_value_info("acc", onnx.TensorProto.FLOAT, [1]),
        ]
        outer_body_outputs = [
            onnx_helper.make_tensor_value_info("outer_cond_out", onnx.TensorProto.BOOL, []),
            onnx_helper.make_tensor_value_info("acc_out", onnx.TensorProto.FLOAT, [1]),
        ]
        outer_body = onnx_helper.make_graph(
            [
                onnx_helper.make_node("Identity", ["outer_cond"], ["outer_cond_out"]),
                onnx_helper.make_node(
                    "Loop", ["trip", "", "acc"], ["acc_out"], name="inner", body=inner
                ),
            ],
            "outer_body",
            outer_body_inputs,
            outer_body_outputs,
        )
        loop_model.graph.node[0].attribute[0].g.CopyFrom(outer_body)

        scopes = ScopeTree()
        result = GraphConverter().convert_model(loop_model, scopes=scopes)
        assert result.success, result.format_diagnostics()
        outer = _loop_instruction(result.function)
        inner_loop = outer.blocks["body"].instructions[1]
        assert inner_loop.blocks["body"].name == "inner.body"
        assert scopes.live_count == 1


class TestLoopFailures:
    """Test loop diagnostics."""

    def test_body_arity(self, loop_model):
        """Test that a body input count mismatch is reported on the loop node."""
        body = loop_model.graph.node[0].attribute[0].g
        del body.input[2]
        result = GraphConverter().convert_model(loop_model)
        assert result.diagnostics[0].kind is ErrorKind.INVALID_NODE_ARITY
        assert result.diagnostics[0].node == "loop"

    def test_too_few_body_outputs(self, loop_model):
        """Test that the body must return the condition and every carried value."""
        body = loop_model.graph.node[0].attribute[0].g
        del body.output[1]
        result = GraphConverter().convert_model(loop_model)
        assert result.diagnostics[0].kind is ErrorKind.INVALID_NODE_ARITY

    def test_missing_body(self):
        """Test that a Loop without a body attribute is reported."""
        x = onnx_helper.make_tensor_value_info("x", onnx.TensorProto.FLOAT, [1])
        node = onnx_helper.make_node("Loop", ["", "", "x"], ["y"], name="loop")
        graph = onnx_helper.make_graph([node], "NoBody", [x], [])
        result = GraphConverter().convert_graph(graph, opset_version=20)
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind is ErrorKind.MISSING_ATTRIBUTE

    def test_failure_inside_body(self, loop_model):
        """Test that diagnostics inside the body carry the nested graph path."""
        body = loop_model.graph.node[0].attribute[0].g
        body.node[1].op_type = "Foo"
        result = GraphConverter().convert_model(loop_model)
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind is ErrorKind.UNSUPPORTED_OPERATOR
        assert diagnostic.graph == "LoopModel/loop.body"
        assert diagnostic.node == "add_c"

    def test_scopes_released_after_failure(self, loop_model):
        """Test that child scopes are released even when the body fails."""
        body = loop_model.graph.node[0].attribute[0].g
        body.node[1].input[1] = "undefined"
        scopes = ScopeTree()
        result = GraphConverter().convert_model(loop_model, scopes=scopes)
        assert not result.success
        assert scopes.live_count == 1


class TestIf:
    """Test If conversion."""

    def test_branches(self, if_model):
        """Test that both branches become blocks and capture ``x``."""
        function = GraphConverter().convert_model(if_model).raise_for_errors()
        (branch, _) = function.body.instructions
        assert branch.op_type == "If"
        assert set(branch.blocks) == {"then", "else"}
        then_block = branch.blocks["then"]
        assert then_block.arguments == []
        relu = then_block.instructions[0]
        assert relu.operands == (function.arguments[1],)

    def test_branch_names_stay_local(self, if_model):
        """Test that branch outputs are not bound in the parent scope."""
        scopes = ScopeTree()
        GraphConverter().convert_model(if_model, scopes=scopes)
        assert scopes.root.contains("y")
        assert not scopes.root.contains("y_then")
        assert not scopes.root.contains("y_else")

    def test_branch_output_count(self, if_model):
        """Test that branches must produce one value per If output."""
        if_model.graph.node[0].output.append("extra")
        result = GraphConverter().convert_model(if_model)
        assert result.diagnostics[0].kind is ErrorKind.INVALID_NODE_ARITY
