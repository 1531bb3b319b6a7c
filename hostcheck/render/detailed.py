"""
hostcheck.render.detailed
AUTHOR: carter-vin

Human explanation renderer ("explain" mode)
"""

from __future__ import annotations

from hostcheck.model import STATUS_OK
from hostcheck.render.base import Renderer
from hostcheck.render.utils import format_error, format_percent, metric_label

TITLE = "Host Health Check - Detailed Analysis"

_HEALTHY_EXPLANATION = (
    "Explanation: the host is considered healthy because every measured "
    "resource is operating below its ceiling, indicating sufficient "
    "available capacity."
)

_UNHEALTHY_EXPLANATION = (
    "Explanation: the host is considered unhealthy because at least one "
    "resource is at or above its ceiling, or could not be measured. "
    "Investigate high resource usage processes, scale the host, or fix the "
    "measurement error reported above."
)


def _status_line(item) -> str:
    label = metric_label(item.name)
    ceiling = format_percent(item.ceiling)
    if item.failed_to_measure:
        return f"  [{item.status}] {label}: could not measure ({format_error(item)})"
    if item.status == STATUS_OK:
        return f"  [{item.status}] {label}: {format_percent(item.value)} - below {ceiling}"
    return f"  [{item.status}] {label}: {format_percent(item.value)} - at or above {ceiling}"


def _issue(item) -> str:
    label = metric_label(item.name)
    if item.failed_to_measure:
        return f"{label}(unmeasured)"
    return f"{label}({format_percent(item.value)})"


class DetailedRenderer(Renderer):
    name = "detailed"

    def render(self, verdict) -> str:
        items = list(verdict.per_metric)
        width = max((len(metric_label(item.name)) for item in items), default=0) + 1

        blocks: list[str] = [TITLE, "=" * len(TITLE), f"Captured at: {verdict.captured_at}", ""]

        blocks.append("Current System Usage:")
        for item in items:
            label = f"{metric_label(item.name)}:".ljust(width)
            value = "unavailable" if item.failed_to_measure else format_percent(item.value)
            blocks.append(f"  {label} {value}")
        blocks.append("")

        ceilings = {item.ceiling for item in items}
        if len(ceilings) == 1:
            blocks.append(f"Health Threshold: {format_percent(ceilings.pop())}")
        else:
            blocks.append("Health Thresholds:")
            for item in items:
                label = f"{metric_label(item.name)}:".ljust(width)
                blocks.append(f"  {label} {format_percent(item.ceiling)}")
        blocks.append("")

        blocks.append("Individual Component Status:")
        for item in items:
            blocks.append(_status_line(item))
        blocks.append("")

        blocks.append("Overall Health Status:")
        if verdict.healthy:
            blocks.append(f"  {verdict.overall} - all system resources are within acceptable limits")
            blocks.append("")
            blocks.append(_HEALTHY_EXPLANATION)
        else:
            failing = [item for item in items if item.name in verdict.failing_metrics]
            issues = ", ".join(_issue(item) for item in failing)
            blocks.append(f"  {verdict.overall} - issues detected with: {issues}")
            blocks.append("")
            blocks.append(_UNHEALTHY_EXPLANATION)

        return "\n".join(blocks).rstrip()
