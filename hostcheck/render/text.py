"""
hostcheck.render.text
AUTHOR: carter-vin

Plain renderer: one line per metric + overall line
"""

from __future__ import annotations

from hostcheck.render.base import Renderer
from hostcheck.render.utils import format_error, format_percent, metric_label


class TextRenderer(Renderer):
    name = "text"

    def render(self, verdict) -> str:
        lines: list[str] = []
        for item in verdict.per_metric:
            line = (
                f"{metric_label(item.name)}: {format_percent(item.value)} "
                f"(ceiling {format_percent(item.ceiling)}) {item.status}"
            )
            if item.failed_to_measure:
                line += f" - {format_error(item)}"
            lines.append(line)

        lines.append(f"Overall: {verdict.overall}")
        return "\n".join(lines)
