"""Output formatters for exploration results."""
from __future__ import annotations
import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any
if TYPE_CHECKING:
    from pathspectre.execution.explorer import ExplorationResult


class Formatter(ABC):
    """Base class for output formatters."""
    name: str = "base"
    extension: str = ".txt"
    @abstractmethod
    def format(self, results: list[ExplorationResult]) -> str:
        """Format the results of one or more explored functions."""
    def save(self, results: list[ExplorationResult], filepath: str) -> None:
        """Save formatted results to file."""
        content = self.format(results)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)


class TextFormatter(Formatter):
    """Plain text formatter: one block per function, one line per state."""
    name = "text"
    extension = ".txt"
    DECISION_LABELS = {
        "ALWAYS_TRUE": "always true",
        "ALWAYS_FALSE": "always false",
        "UNDECIDABLE": "forks",
    }
    def __init__(self, show_states: bool = True, show_summary: bool = False):
        self.show_states = show_states
        self.show_summary = show_summary
    def format(self, results: list[ExplorationResult]) -> str:
        lines = []
        for result in results:
            lines.extend(self._format_function(result))
            lines.append("")
        lines.append("─" * 60)
        total_states = sum(r.states_recorded for r in results)
        partial = sum(1 for r in results if r.is_partial)
        lines.append(
            f"  {len(results)} function(s), {total_states} state(s) recorded, "
            f"{partial} partial"
        )
        return "\n".join(lines) + "\n"
    def _format_function(self, result: ExplorationResult) -> list[str]:
        header = f"═══ {result.function} "
        lines = [header + "═" * max(0, 60 - len(header))]
        lines.append(
            f"  steps: {result.steps}  states: {result.states_recorded}  "
            f"pruned: {result.pruned}  deduplicated: {result.deduplicated}  "
            f"time: {result.resources.elapsed_time:.3f}s"
        )
        if result.budget is not None:
            lines.append(f"  ⚠ partial result: {result.budget}")
        for point in result.points():
            node = result.graph.node(point)
            location = f"line {node.line}" if node.line is not None else f"node {point}"
            text = f"  [{location}] {node}"
            decision = result.decision_at(point)
            if decision is not None:
                text += f"  ({self.DECISION_LABELS[decision.name]})"
            lines.append(text)
            if self.show_states:
                for state in result.states[point]:
                    described = state.describe()
                    if described:
                        lines.append(
                            "      " + ", ".join(f"{k}={v}" for k, v in described.items())
                        )
            if self.show_summary:
                summary = result.summary_at(point)
                if summary:
                    lines.append(
                        "      ∨ " + ", ".join(f"{k}={v}" for k, v in summary.items())
                    )
        return lines


class JSONFormatter(Formatter):
    """JSON formatter for machine-readable output."""
    name = "json"
    extension = ".json"
    def __init__(self, indent: int = 2, include_summary: bool = False):
        self.indent = indent
        self.include_summary = include_summary
    def format(self, results: list[ExplorationResult]) -> str:
        from pathspectre import __version__
        data = {
            "meta": {
                "tool": "pathspectre",
                "version": __version__,
                "timestamp": datetime.now().isoformat(),
            },
            "functions": [self._format_result(r) for r in results],
        }
        return json.dumps(data, indent=self.indent, default=str)
    def _format_result(self, result: ExplorationResult) -> dict[str, Any]:
        data = result.to_dict()
        if self.include_summary:
            for entry in data["points"]:
                entry["summary"] = {
                    k: str(v) for k, v in result.summary_at(entry["point"]).items()
                }
        return data


def format_result(
    results: ExplorationResult | list[ExplorationResult],
    format_type: str = "text",
    **kwargs,
) -> str:
    """
    Format exploration results.
    Args:
        results: One result or a list of results
        format_type: "text" or "json"
        **kwargs: Additional formatter options
    Returns:
        Formatted string
    """
    formatters = {
        "text": TextFormatter,
        "json": JSONFormatter,
    }
    if not isinstance(results, list):
        results = [results]
    formatter_class = formatters.get(format_type.lower(), TextFormatter)
    formatter = formatter_class(**kwargs)
    return formatter.format(results)


__all__ = ["Formatter", "TextFormatter", "JSONFormatter", "format_result"]
