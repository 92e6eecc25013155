"""Conversion outcome and driver state types."""

__docformat__ = "restructuredtext"
__all__ = ["ConversionResult", "ConverterState"]

from dataclasses import dataclass
from enum import Enum

from onnxfront.errors import ConversionFailed, Diagnostic, ErrorKind
from onnxfront.ir import Function


class ConverterState(Enum):
    """Lifecycle of a :class:`GraphConverter`.

    :cvar IDLE: No conversion has run yet
    :cvar CONVERTING_GRAPH: Converting the top-level graph
    :cvar CONVERTING_SUBGRAPH: Converting a control-flow body
    :cvar SUCCESS: Last conversion finished without diagnostics
    :cvar FAILED: Last conversion accumulated diagnostics
    """

    IDLE = "idle"
    CONVERTING_GRAPH = "converting_graph"
    CONVERTING_SUBGRAPH = "converting_subgraph"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of converting one model.

    Exactly one of ``function`` and ``diagnostics`` is populated: a failed
    conversion hands out no partial IR.

    :param function: Converted IR function, None on failure
    :param diagnostics: Ordered failures, empty on success
    """

    function: Function | None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def success(self) -> bool:
        return not self.diagnostics

    def unsupported_operators(self) -> list[str]:
        """Distinct unsupported operator kinds, in order of first occurrence."""
        seen: dict[str, None] = {}
        for diagnostic in self.diagnostics:
            if diagnostic.kind is ErrorKind.UNSUPPORTED_OPERATOR:
                seen.setdefault(diagnostic.op_type, None)
        return list(seen)

    def raise_for_errors(self) -> Function:
        """Return the function, or raise if the conversion failed.

        :raises ConversionFailed: If any diagnostics were recorded
        """
        if self.diagnostics or self.function is None:
            raise ConversionFailed(self.diagnostics)
        return self.function

    def format_diagnostics(self) -> str:
        return "\n".join(str(diagnostic) for diagnostic in self.diagnostics)
