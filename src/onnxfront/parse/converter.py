"""Graph converter: drives the conversion of one ONNX graph into an IR function.

Nodes are visited in declared order. Each node's inputs are resolved through the
scope tree, its attributes are wrapped in :class:`OnnxAttrs`, and the converter
registered for its operator kind emits IR. Loop and If nodes are handled here,
recursing into their bodies with a child scope and a nested block.

Failures never abort the walk: they are accumulated as diagnostics and the
conversion succeeds only when none were recorded.
"""

__docformat__ = "restructuredtext"
__all__ = ["GraphConverter"]

from collections.abc import Sequence
from dataclasses import dataclass, field

from onnx import GraphProto, ModelProto, NodeProto, ValueInfoProto

from onnxfront.converters import ConverterRegistry, get_default_registry
from onnxfront.errors import (
    ConversionError,
    Diagnostic,
    DuplicateBinding,
    InvalidNodeArity,
    NameNotFound,
    UnresolvedInput,
    UnsupportedOperator,
)
from onnxfront.frontend import OnnxAttrs, Scope, ScopeTree, materialize_tensor, resolve_value_type
from onnxfront.frontend.attrs import AttrKind
from onnxfront.ir import DYNAMIC, DataType, Instruction, IRBuilder, Type, Value
from onnxfront.normalize import (
    collect_value_types,
    extract_onnx_opset_version,
    get_onnx_initializers,
    node_label,
)
from onnxfront.options import ConvertOptions
from onnxfront.parse.types import ConversionResult, ConverterState

_DEFAULT_DOMAINS = ("", "ai.onnx")

# Loop body arguments that precede the carried values
_LOOP_ITERATION_TYPES = (Type(DataType.INT64, ()), Type(DataType.BOOL, ()))


@dataclass
class _Run:
    """Mutable state of one conversion call."""

    builder: IRBuilder
    opset_version: int
    scopes: ScopeTree = field(default_factory=ScopeTree)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def record(self, graph: str, node: str, op_type: str, error: ConversionError) -> None:
        self.diagnostics.append(
            Diagnostic(graph=graph, node=node, op_type=op_type, kind=error.kind, message=str(error))
        )


def _declares_element_type(value_info: ValueInfoProto) -> bool:
    type_proto = value_info.type
    return type_proto.WhichOneof("value") == "tensor_type" and type_proto.tensor_type.elem_type != 0


def _with_batch_size(value_type: Type, batch_size: int | None) -> Type:
    if batch_size is None or not value_type.shape or value_type.shape[0] is not DYNAMIC:
        return value_type
    return value_type.with_shape((batch_size, *value_type.shape[1:]))


class GraphConverter:
    """Convert ONNX models or graphs into IR functions.

    One instance may convert several models one after the other; every call gets
    its own scope tree, builder and diagnostics.

    :param registry: Converter registry (default: the shared default catalog)
    :param options: Conversion options
    """

    def __init__(
        self,
        registry: ConverterRegistry | None = None,
        options: ConvertOptions | None = None,
    ):
        self.registry = registry if registry is not None else get_default_registry()
        self.options = options if options is not None else ConvertOptions()
        self.state = ConverterState.IDLE

    def convert_model(
        self, model: ModelProto, scopes: ScopeTree | None = None
    ) -> ConversionResult:
        """Convert the main graph of a model.

        :param model: Decoded (and usually preprocessed) ONNX model
        :param scopes: Scope tree to bind names into (see :meth:`convert_graph`)
        :return: Function on success, ordered diagnostics otherwise
        :raises ValueError: If the model declares no default-domain opset
        """
        opset_version = extract_onnx_opset_version(model)
        return self.convert_graph(model.graph, opset_version, scopes=scopes)

    def convert_graph(
        self,
        graph: GraphProto,
        opset_version: int,
        name: str | None = None,
        scopes: ScopeTree | None = None,
    ) -> ConversionResult:
        """Convert one top-level graph.

        :param graph: ONNX graph
        :param opset_version: Opset used to select converter versions
        :param name: Function name (default: options, then the graph name)
        :param scopes: Scope tree to bind names into (default: a fresh one); its root
            holds the graph's bindings once the call returns
        :return: Function on success, ordered diagnostics otherwise
        """
        function_name = name or self.options.function_name or graph.name or "main"
        run = _Run(
            builder=IRBuilder(function_name, collect_value_types(graph)),
            opset_version=opset_version,
            scopes=scopes if scopes is not None else ScopeTree(),
        )

        self.state = ConverterState.CONVERTING_GRAPH
        self._convert_graph(run, graph, run.scopes.root, function_name)

        if run.diagnostics:
            self.state = ConverterState.FAILED
            return ConversionResult(function=None, diagnostics=tuple(run.diagnostics))
        self.state = ConverterState.SUCCESS
        return ConversionResult(function=run.builder.function)

    def _convert_graph(
        self,
        run: _Run,
        graph: GraphProto,
        scope: Scope,
        path: str,
        arg_types: Sequence[Type | None] | None = None,
    ) -> None:
        is_root = arg_types is None
        initializers = get_onnx_initializers(graph)

        for position, value_info in enumerate(graph.input):
            if value_info.name in initializers:
                continue
            fallback = None
            if arg_types is not None and position < len(arg_types):
                fallback = arg_types[position]
            self._bind_argument(run, value_info, scope, path, fallback, is_root)

        for proto in initializers.values():
            try:
                constant = run.builder.create_constant(proto.name, materialize_tensor(proto))
                scope.insert(proto.name, constant)
            except ConversionError as error:
                run.record(path, f"initializer '{proto.name}'", "", error)

        for index, node in enumerate(graph.node):
            self._convert_node(run, node, scope, path, index)

        outputs: list[Value | None] = []
        for value_info in graph.output:
            try:
                outputs.append(scope.find(value_info.name))
            except NameNotFound as error:
                run.record(path, f"output '{value_info.name}'", "", error)
                outputs.append(None)
        run.builder.create_return(outputs)

    def _bind_argument(
        self,
        run: _Run,
        value_info: ValueInfoProto,
        scope: Scope,
        path: str,
        fallback: Type | None,
        is_root: bool,
    ) -> None:
        label = f"input '{value_info.name}'"
        value_type: Type | None = None
        if is_root or fallback is not None or _declares_element_type(value_info):
            try:
                value_type = resolve_value_type(value_info, fallback)
            except ConversionError as error:
                run.record(path, label, "", error)
        if is_root and value_type is not None:
            value_type = _with_batch_size(value_type, self.options.batch_size)

        argument = run.builder.create_argument(value_info.name, value_type)
        try:
            scope.insert(value_info.name, argument)
        except DuplicateBinding as error:
            run.record(path, label, "", error)

    def _resolve_inputs(self, node: NodeProto, scope: Scope) -> list[Value | None]:
        inputs: list[Value | None] = []
        missing: list[str] = []
        for name in node.input:
            if not name:
                inputs.append(None)
                continue
            try:
                inputs.append(scope.find(name))
            except NameNotFound:
                missing.append(name)
        if missing:
            raise UnresolvedInput(missing)
        return inputs

    def _convert_node(
        self,
        run: _Run,
        node: NodeProto,
        scope: Scope,
        path: str,
        index: int,
    ) -> None:
        label = node_label(node, index)
        try:
            inputs = self._resolve_inputs(node, scope)
        except UnresolvedInput as error:
            run.record(path, label, node.op_type, error)
            return

        try:
            if node.domain not in _DEFAULT_DOMAINS:
                raise UnsupportedOperator(f"{node.domain}.{node.op_type}")
            if node.op_type == "Loop":
                outputs = self._convert_loop(run, node, inputs, OnnxAttrs(node), scope, path)
            elif node.op_type == "If":
                outputs = self._convert_if(run, node, inputs, OnnxAttrs(node), scope, path)
            else:
                converter = self.registry.lookup(node.op_type, run.opset_version)
                outputs = converter(run.builder, node, inputs, OnnxAttrs(node))
        except UnsupportedOperator as error:
            run.record(path, label, node.op_type, error)
            if not self.options.placeholder_unsupported:
                return
            outputs = self._create_placeholder(run, node, inputs)
        except ConversionError as error:
            run.record(path, label, node.op_type, error)
            return

        for name, value in zip(node.output, outputs):
            if not name:
                continue
            try:
                scope.insert(name, value)
            except DuplicateBinding as error:
                run.record(path, label, node.op_type, error)

    def _create_placeholder(
        self,
        run: _Run,
        node: NodeProto,
        inputs: list[Value | None],
    ) -> list[Value]:
        inst = run.builder.create_instruction(
            "Dummy",
            inputs,
            {"op_type": node.op_type, "domain": node.domain},
            name=node.name,
            output_names=list(node.output),
        )
        return list(inst.results)

    def _convert_loop(
        self,
        run: _Run,
        node: NodeProto,
        inputs: list[Value | None],
        attrs: OnnxAttrs,
        scope: Scope,
        path: str,
    ) -> list[Value]:
        body = attrs.require("body", AttrKind.GRAPH)
        num_carried = len(inputs) - 2
        if num_carried < 0:
            raise InvalidNodeArity(
                f"Loop expects at least 2 inputs (M, cond), got {len(inputs)}"
            )
        if len(body.input) != 2 + num_carried:
            raise InvalidNodeArity(
                f"Loop body expects {2 + num_carried} inputs for {num_carried} carried "
                f"value(s), got {len(body.input)}"
            )
        if len(body.output) < 1 + num_carried:
            raise InvalidNodeArity(
                f"Loop body needs at least {1 + num_carried} outputs, got {len(body.output)}"
            )

        inst = run.builder.create_instruction(
            "Loop", inputs, name=node.name, output_names=list(node.output)
        )
        carried_types = [None if value is None else value.type for value in inputs[2:]]
        self._convert_subgraph(
            run, inst, "body", body, scope, path, [*_LOOP_ITERATION_TYPES, *carried_types]
        )
        return list(inst.results)

    def _convert_if(
        self,
        run: _Run,
        node: NodeProto,
        inputs: list[Value | None],
        attrs: OnnxAttrs,
        scope: Scope,
        path: str,
    ) -> list[Value]:
        then_branch = attrs.require("then_branch", AttrKind.GRAPH)
        else_branch = attrs.require("else_branch", AttrKind.GRAPH)
        if len(inputs) != 1 or inputs[0] is None:
            raise InvalidNodeArity(f"If expects exactly 1 input (cond), got {len(inputs)}")
        for role, branch in (("then", then_branch), ("else", else_branch)):
            if len(branch.output) != len(node.output):
                raise InvalidNodeArity(
                    f"If {role} branch has {len(branch.output)} outputs, "
                    f"node declares {len(node.output)}"
                )

        inst = run.builder.create_instruction(
            "If", inputs, name=node.name, output_names=list(node.output)
        )
        self._convert_subgraph(run, inst, "then", then_branch, scope, path, ())
        self._convert_subgraph(run, inst, "else", else_branch, scope, path, ())
        return list(inst.results)

    def _convert_subgraph(
        self,
        run: _Run,
        owner: Instruction,
        role: str,
        graph: GraphProto,
        scope: Scope,
        path: str,
        arg_types: Sequence[Type | None],
    ) -> None:
        """Convert a control-flow body into a nested block under a child scope.

        Names bound in the body are released with the child scope, so only the
        owner's results become visible to the enclosing graph.
        """
        previous = self.state
        self.state = ConverterState.CONVERTING_SUBGRAPH
        try:
            with (
                run.builder.nested_block(owner, role),
                run.builder.type_hints(collect_value_types(graph)),
                scope.create_child() as child,
            ):
                self._convert_graph(run, graph, child, f"{path}/{owner.name}.{role}", arg_types)
        finally:
            self.state = previous
