"""Graph conversion driver, conversion results and operator reports."""

__docformat__ = "restructuredtext"
__all__ = [
    "REPORT_COLUMNS",
    "ConversionResult",
    "ConverterState",
    "GraphConverter",
    "write_csv_report",
]

from onnxfront.parse.converter import GraphConverter
from onnxfront.parse.report import REPORT_COLUMNS, write_csv_report
from onnxfront.parse.types import ConversionResult, ConverterState
