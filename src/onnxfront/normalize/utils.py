"""Utility functions for ONNX model inspection."""

__docformat__ = "restructuredtext"
__all__ = [
    "collect_value_types",
    "extract_onnx_opset_version",
    "get_onnx_initializers",
    "iter_subgraphs",
    "node_label",
]

from collections.abc import Iterator

from onnx import AttributeProto, GraphProto, ModelProto, NodeProto, TensorProto

from onnxfront.errors import ConversionError
from onnxfront.frontend.materialize import resolve_value_type
from onnxfront.ir import Type


def get_onnx_initializers(graph: GraphProto) -> dict[str, TensorProto]:
    """Get all initializer tensors of one graph.

    :param graph: ONNX graph
    :return: Dictionary mapping initializer tensor names to TensorProto
    """
    return {init.name: init for init in graph.initializer}


def collect_value_types(graph: GraphProto) -> dict[str, Type]:
    """Collect IR types declared for intermediate values and outputs of one graph.

    Declarations whose type cannot be represented are skipped; the result only
    serves as type hints for instruction results.

    :param graph: ONNX graph, usually after shape inference
    :return: Mapping from value name to IR type
    """
    types: dict[str, Type] = {}
    for value_info in (*graph.value_info, *graph.output):
        try:
            types[value_info.name] = resolve_value_type(value_info)
        except ConversionError:
            continue
    return types


def node_label(node: NodeProto, index: int) -> str:
    """Name a node for reports: its name, else its first output, else op type and position."""
    if node.name:
        return node.name
    if node.output and node.output[0]:
        return node.output[0]
    return f"{node.op_type}_{index}"


def iter_subgraphs(node: NodeProto) -> Iterator[tuple[str, GraphProto]]:
    """Yield ``(attribute name, graph)`` for every graph-valued attribute of a node.

    :param node: ONNX node
    """
    for attr in node.attribute:
        if attr.type == AttributeProto.GRAPH:
            yield attr.name, attr.g
        elif attr.type == AttributeProto.GRAPHS:
            for index, graph in enumerate(attr.graphs):
                yield f"{attr.name}[{index}]", graph


def extract_onnx_opset_version(model: ModelProto) -> int:
    """Extract ONNX opset version from model.

    :param model: ONNX model
    :return: Opset version of the default domain
    """
    if not model.opset_import:
        raise ValueError("Model has no opset_import")

    for opset in model.opset_import:
        if opset.domain == "" or opset.domain == "ai.onnx":
            return opset.version  # type: ignore[no-any-return]

    raise ValueError("Model has no primary opset (domain='' or 'ai.onnx')")
