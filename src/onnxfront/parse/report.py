"""CSV report of the operators used by a model."""

__docformat__ = "restructuredtext"
__all__ = ["REPORT_COLUMNS", "write_csv_report"]

import csv
from typing import TextIO

from onnx import GraphProto, ModelProto

from onnxfront.converters import ConverterRegistry, get_default_registry
from onnxfront.errors import UnsupportedOperator
from onnxfront.normalize import extract_onnx_opset_version, iter_subgraphs, node_label

REPORT_COLUMNS = ("graph", "op_type", "name", "num_inputs", "num_outputs", "supported")

# Operators handled by the graph converter itself
_CONTROL_FLOW = ("Loop", "If")


def _is_supported(op_type: str, domain: str, registry: ConverterRegistry, opset: int) -> bool:
    if domain not in ("", "ai.onnx"):
        return False
    if op_type in _CONTROL_FLOW:
        return True
    try:
        registry.lookup(op_type, opset)
    except UnsupportedOperator:
        return False
    return True


def _write_graph(writer, graph: GraphProto, path: str, registry, opset: int) -> int:
    rows = 0
    for index, node in enumerate(graph.node):
        name = node_label(node, index)
        writer.writerow(
            {
                "graph": path,
                "op_type": node.op_type,
                "name": name,
                "num_inputs": len(node.input),
                "num_outputs": len(node.output),
                "supported": _is_supported(node.op_type, node.domain, registry, opset),
            }
        )
        rows += 1
        for attr_name, subgraph in iter_subgraphs(node):
            rows += _write_graph(writer, subgraph, f"{path}/{name}.{attr_name}", registry, opset)
    return rows


def write_csv_report(
    model_or_graph: ModelProto | GraphProto,
    stream: TextIO,
    registry: ConverterRegistry | None = None,
    opset: int | None = None,
) -> int:
    """Write one CSV row per node, recursing into subgraphs.

    :param model_or_graph: Model (opset read from it) or bare graph
    :param stream: Text stream opened with ``newline=""``
    :param registry: Registry used to decide support (default: the default catalog)
    :param opset: Opset for converter lookup; required for a bare graph
    :return: Number of node rows written
    """
    if isinstance(model_or_graph, ModelProto):
        graph = model_or_graph.graph
        if opset is None:
            opset = extract_onnx_opset_version(model_or_graph)
    else:
        graph = model_or_graph
    if opset is None:
        raise ValueError("opset is required when reporting on a bare graph")
    if registry is None:
        registry = get_default_registry()

    writer = csv.DictWriter(stream, fieldnames=REPORT_COLUMNS)
    writer.writeheader()
    return _write_graph(writer, graph, graph.name or "main", registry, opset)
