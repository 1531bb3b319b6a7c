"""
hostcheck.main
------------
AUTHOR: carter-vin

PURPOSE:
- Sample cpu / memory / disk on this host and print a healthy/unhealthy verdict
- Stable CLI entrypoint for operators, cron and remote task runners

Key contract:
- `host-health-check check` exits 0 when HEALTHY, 1 when UNHEALTHY
- usage or policy errors exit 2; log file write failures exit 3
- every metric that could not be measured is reported with its error
"""

from __future__ import annotations

import os
import platform
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from hostcheck.emit import LogTargets, build_log_entry, write_log_entry
from hostcheck.errors import PolicyError
from hostcheck.evaluate import run_health_check
from hostcheck.logging import emit_event
from hostcheck.model import Verdict
from hostcheck.policy import ThresholdPolicy, load_policy, parse_ceiling_option
from hostcheck.render import RENDERER_NAMES, get_renderer
from hostcheck.render.system import render_system_info
from hostcheck.sampler import DEFAULT_TIMEOUT_S, Sampler
from hostcheck.sources import MetricSource, default_sources
from hostcheck.sysinfo import collect_system_info

# Explicit multi-command CLI
app = typer.Typer(
    add_completion=False,
    help="host-health-check: cpu/memory/disk health verdict for this host",
)

TOOL_VERSION = "0.2.0"

EXIT_HEALTHY = 0
EXIT_UNHEALTHY = 1
EXIT_USAGE = 2
EXIT_LOG_FAILED = 3

# Back-to-back /proc/stat reads rarely advance; keep a real window
MIN_CPU_INTERVAL_S = 0.1


# -----------------------------
# DATA CLASSES
# -----------------------------
@dataclass(frozen=True)
class EnvironmentInfo:
    """
    Snapshot of the runtime environment
    - help correlate issues across hosts and times
    """

    python_version: str
    os: str
    machine: str
    utc_now: str


def collect_environment_info() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=sys.version.split()[0],
        os=f"{platform.system()} {platform.release()}",
        machine=platform.machine(),
        utc_now=datetime.now(timezone.utc).isoformat(),
    )


@dataclass(frozen=True)
class CheckSettings:
    """
    Resolved options shared by check and watch
    """

    policy: ThresholdPolicy
    sources: list[MetricSource]
    output_format: str
    timeout: float
    log_targets: Optional[LogTargets]


# -----------------------------
# HELPERS
# -----------------------------
def exit_code_for(verdict: Verdict) -> int:
    return EXIT_HEALTHY if verdict.healthy else EXIT_UNHEALTHY


def build_policy(
    threshold: Optional[float],
    ceilings: Optional[list[str]],
    policy_file: Optional[str],
) -> ThresholdPolicy:
    """
    Precedence: --ceiling > --threshold > policy file > built-in 60
    """
    policy = load_policy(Path(policy_file)) if policy_file else ThresholdPolicy()
    overrides = dict(parse_ceiling_option(raw) for raw in ceilings or [])
    policy = policy.with_overrides(default=threshold, ceilings=overrides)
    policy.validate()
    return policy


def check_mounts(mounts: Optional[list[str]]) -> None:
    """
    Reject the same mount point given twice (each becomes one disk:<mount> metric)
    """
    seen: set[str] = set()
    for mount in mounts or []:
        normalized = os.path.normpath(mount)
        if normalized in seen:
            raise typer.BadParameter(f"--mount {mount} given more than once")
        seen.add(normalized)


def build_sources(cpu_interval: float, mounts: Optional[list[str]]) -> list[MetricSource]:
    return default_sources(cpu_interval=cpu_interval, mounts=tuple(mounts or ["/"]))


def _resolve_settings(
    *,
    output_format: str,
    threshold: Optional[float],
    ceiling: Optional[list[str]],
    policy_file: Optional[str],
    mount: Optional[list[str]],
    cpu_interval: float,
    timeout: float,
    log_file: Optional[str],
    log_max_bytes: Optional[int],
    log_rotate_count: int,
) -> CheckSettings:
    if output_format not in RENDERER_NAMES:
        raise typer.BadParameter(f"--format must be one of: {', '.join(RENDERER_NAMES)}")

    check_mounts(mount)

    try:
        policy = build_policy(threshold, ceiling, policy_file)
    except PolicyError as e:
        # Never fall back to a default policy
        typer.echo(f"policy error: {e}", err=True)
        raise typer.Exit(code=EXIT_USAGE)

    log_targets = None
    if log_file:
        log_targets = LogTargets(
            log_path=Path(log_file),
            max_bytes=log_max_bytes,
            rotate_count=log_rotate_count,
        )

    return CheckSettings(
        policy=policy,
        sources=build_sources(cpu_interval, mount),
        output_format=output_format,
        timeout=timeout,
        log_targets=log_targets,
    )


def _run_cycle(settings: CheckSettings, sampler: Sampler, *, mode: str) -> Verdict:
    """
    One sample -> evaluate -> render -> log cycle

    Raises on log file errors after surfacing them as an event.
    """
    verdict = run_health_check(settings.policy, settings.sources, sampler=sampler)

    for item in verdict.per_metric:
        if item.failed_to_measure:
            emit_event(
                "source_failed",
                tool_version=TOOL_VERSION,
                mode=mode,
                metric=item.name,
                error_type=item.error_type,
                message=item.error_message,
            )

    typer.echo(get_renderer(settings.output_format).render(verdict))

    if settings.log_targets is not None:

        def _on_log_error(e: Exception, path: Path) -> None:
            emit_event(
                "log_write_failed",
                tool_version=TOOL_VERSION,
                mode=mode,
                log_path=str(path),
                error_type=type(e).__name__,
                message=str(e),
            )

        rotation = write_log_entry(
            build_log_entry(verdict),
            settings.log_targets,
            on_error=_on_log_error,
        )
        if rotation is not None:
            emit_event("log_rotated", tool_version=TOOL_VERSION, mode=mode, **rotation)

    emit_event(
        "verdict_emitted",
        tool_version=TOOL_VERSION,
        mode=mode,
        overall=verdict.overall,
        failing_metrics=list(verdict.failing_metrics),
    )
    return verdict


# -----------------------------
# SHARED OPTIONS
# -----------------------------
FORMAT_OPTION = typer.Option("text", "--format", help="Output format: text, detailed or json.")
THRESHOLD_OPTION = typer.Option(
    None,
    "--threshold",
    envvar="HOST_CHECK_THRESHOLD",
    help="Default ceiling percent for every metric (built-in 60).",
)
CEILING_OPTION = typer.Option(
    None,
    "--ceiling",
    help="Per-metric ceiling NAME=PERCENT; NAME may be a pattern like 'disk:*'. Repeatable.",
)
POLICY_FILE_OPTION = typer.Option(
    None,
    "--policy-file",
    envvar="HOST_CHECK_POLICY_FILE",
    help='JSON policy file: {"default": 60, "ceilings": {"cpu": 80}}.',
)
MOUNT_OPTION = typer.Option(None, "--mount", help="Mount point to check (default /). Repeatable.")
CPU_INTERVAL_OPTION = typer.Option(
    1.0,
    "--cpu-interval",
    min=MIN_CPU_INTERVAL_S,
    help="CPU sampling window (seconds).",
)
TIMEOUT_OPTION = typer.Option(
    DEFAULT_TIMEOUT_S,
    "--timeout",
    min=0.1,
    help="Per-cycle deadline for every source (seconds).",
)
LOG_FILE_OPTION = typer.Option(
    None,
    "--log-file",
    envvar="HOST_CHECK_LOG_FILE",
    help="Append one JSON line per verdict to this file.",
)
LOG_MAX_BYTES_OPTION = typer.Option(None, "--log-max-bytes", min=1, help="Rotate log file at this size.")
LOG_ROTATE_COUNT_OPTION = typer.Option(3, "--log-rotate-count", min=1, help="Rotated log files to keep.")


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Root command behavior: print a short hint when no subcommand is given
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: host-health-check --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print tool version & runtime env
    """
    env = collect_environment_info()

    typer.echo(f"host-health-check v{TOOL_VERSION}")
    typer.echo(f"python={env.python_version}")
    typer.echo(f"os={env.os}")
    typer.echo(f"machine={env.machine}")
    typer.echo(f"utc_now={env.utc_now}")


@app.command("check")
def check(
    output_format: str = FORMAT_OPTION,
    threshold: Optional[float] = THRESHOLD_OPTION,
    ceiling: Optional[list[str]] = CEILING_OPTION,
    policy_file: Optional[str] = POLICY_FILE_OPTION,
    mount: Optional[list[str]] = MOUNT_OPTION,
    cpu_interval: float = CPU_INTERVAL_OPTION,
    timeout: float = TIMEOUT_OPTION,
    log_file: Optional[str] = LOG_FILE_OPTION,
    log_max_bytes: Optional[int] = LOG_MAX_BYTES_OPTION,
    log_rotate_count: int = LOG_ROTATE_COUNT_OPTION,
    system_info: bool = typer.Option(
        False,
        "--system-info",
        help="Also print cpu model, memory totals, /dev filesystems, load and uptime.",
    ),
) -> None:
    """
    Sample once, print the verdict and exit 0 (HEALTHY) or 1 (UNHEALTHY)
    """
    settings = _resolve_settings(
        output_format=output_format,
        threshold=threshold,
        ceiling=ceiling,
        policy_file=policy_file,
        mount=mount,
        cpu_interval=cpu_interval,
        timeout=timeout,
        log_file=log_file,
        log_max_bytes=log_max_bytes,
        log_rotate_count=log_rotate_count,
    )

    emit_event("check_start", tool_version=TOOL_VERSION, mode="check")

    try:
        verdict = _run_cycle(settings, Sampler(settings.timeout), mode="check")
    except OSError:
        # Already surfaced as log_write_failed
        raise typer.Exit(code=EXIT_LOG_FAILED)
    finally:
        emit_event("check_shutdown", tool_version=TOOL_VERSION, mode="check")

    if system_info:
        # Informational only; never changes the exit code
        if settings.output_format != "json":
            typer.echo("")
        typer.echo(render_system_info(collect_system_info(), settings.output_format))

    raise typer.Exit(code=exit_code_for(verdict))


@app.command("watch")
def watch(
    interval: int = typer.Option(
        5,
        help="Run a check at a fixed interval (seconds).",
        min=1,
    ),
    count: int = typer.Option(
        0,
        help="Stop after this many checks (0 = run until interrupted).",
        min=0,
    ),
    output_format: str = FORMAT_OPTION,
    threshold: Optional[float] = THRESHOLD_OPTION,
    ceiling: Optional[list[str]] = CEILING_OPTION,
    policy_file: Optional[str] = POLICY_FILE_OPTION,
    mount: Optional[list[str]] = MOUNT_OPTION,
    cpu_interval: float = CPU_INTERVAL_OPTION,
    timeout: float = TIMEOUT_OPTION,
    log_file: Optional[str] = LOG_FILE_OPTION,
    log_max_bytes: Optional[int] = LOG_MAX_BYTES_OPTION,
    log_rotate_count: int = LOG_ROTATE_COUNT_OPTION,
) -> None:
    """
    Repeat the check; exit code follows the last verdict
    """
    settings = _resolve_settings(
        output_format=output_format,
        threshold=threshold,
        ceiling=ceiling,
        policy_file=policy_file,
        mount=mount,
        cpu_interval=cpu_interval,
        timeout=timeout,
        log_file=log_file,
        log_max_bytes=log_max_bytes,
        log_rotate_count=log_rotate_count,
    )

    emit_event("check_start", tool_version=TOOL_VERSION, mode="watch", interval_s=interval)

    # One sampler for the whole run keeps snapshot time monotonic
    sampler = Sampler(settings.timeout)
    last_code = EXIT_HEALTHY
    cycles = 0

    try:
        while True:
            start = time.monotonic()

            try:
                last_code = exit_code_for(_run_cycle(settings, sampler, mode="watch"))
            except OSError:
                # Log file trouble is reported as an event; keep checking
                last_code = EXIT_LOG_FAILED

            cycles += 1
            if count and cycles >= count:
                break

            elapsed = time.monotonic() - start
            time.sleep(max(0.0, interval - elapsed))

    except KeyboardInterrupt:
        # Graceful shutdown on Ctrl+C
        pass

    finally:
        emit_event("check_shutdown", tool_version=TOOL_VERSION, mode="watch", cycles=cycles)

    raise typer.Exit(code=last_code)


if __name__ == "__main__":
    app()
