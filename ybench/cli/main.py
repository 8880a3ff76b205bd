"""CLI entrypoint for ybench — typer app with `run` and `validate` commands."""

import asyncio
import os
import sys
import time
from pathlib import Path

import structlog
import typer

from ybench.agent.infrastructure.observer import StructlogAgentObserver
from ybench.agent.infrastructure.registry import RegistryAgentFactory
from ybench.config.domain.run import RunConfig
from ybench.config.infrastructure.observer import StructlogConfigObserver
from ybench.config.infrastructure.yaml_loader import YamlConfigLoader
from ybench.core.errors import YBenchError
from ybench.evaluation.application.orchestrator import EvaluationOrchestrator
from ybench.evaluation.domain.bundle import ResultsBundle
from ybench.evaluation.domain.observer import EvaluationObserver
from ybench.evaluation.infrastructure.composite_observer import (
    CompositeEvaluationObserver,
)
from ybench.evaluation.infrastructure.observer import StructlogEvaluationObserver
from ybench.evaluation.infrastructure.progress_observer import (
    ProgressEvaluationObserver,
)
from ybench.evaluation.infrastructure.storage import (
    HISTORY_FILENAME,
    JsonResultSink,
    append_history,
)
from ybench.evaluator.infrastructure.observer import StructlogEvaluatorObserver
from ybench.evaluator.infrastructure.registry import BuiltinEvaluatorRegistry
from ybench.post_evaluation.infrastructure.observer import (
    StructlogPostEvaluationObserver,
)
from ybench.post_evaluation.infrastructure.registry import (
    BuiltinPostEvaluationRegistry,
)
from ybench.workspace.infrastructure.manager import (
    DEFAULT_WORKSPACE_ROOT,
    WorkspaceManager,
)
from ybench.workspace.infrastructure.naming import sanitize_workspace_name
from ybench.workspace.infrastructure.observer import StructlogWorkspaceObserver

app = typer.Typer(add_completion=False)

EXIT_ERROR = 1
EXIT_FAILED = 2
_ARTIFACTS_SUBDIR = "artifacts"


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=EXIT_ERROR)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _output_stem(bundle: ResultsBundle) -> str:
    """Build the output file stem: {config_name}_{YYYYMMDD}_{short_run_id}."""
    date_str = bundle.execution.started_at.strftime("%Y%m%d")
    name = sanitize_workspace_name(bundle.test_case.name)
    short_id = sanitize_workspace_name(bundle.run_id[:8])
    return f"{name}_{date_str}_{short_id}"


def _load_config(config_path: Path) -> RunConfig:
    loader = YamlConfigLoader(
        observer=StructlogConfigObserver(), environ=dict(os.environ)
    )
    return loader.load(path=config_path)


# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_CYAN = "\033[36m"
_YELLOW = "\033[33m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_WHITE = "\033[97m"

_STATUS_COLORS = {
    "passed": _GREEN,
    "success": _GREEN,
    "failed": _RED,
    "partial": _YELLOW,
    "skipped": _YELLOW,
    "timeout": _YELLOW,
}

# Evaluator messages longer than this are cut in the summary table.
_MAX_MESSAGE_LEN = 70


def _status_color(status: str) -> str:
    return _STATUS_COLORS.get(status, _WHITE)


def _rule(width: int = 72, color: str = _DIM) -> None:
    typer.echo(f"{color}{'─' * width}{_RESET}")


def _truncate(text: str, max_len: int = _MAX_MESSAGE_LEN) -> str:
    """Truncate text to max_len, appending '…' if needed."""
    first_line = text.splitlines()[0] if text else ""
    if len(first_line) <= max_len:
        return first_line
    return first_line[: max_len - 1] + "…"


def _format_elapsed(elapsed_seconds: float) -> str:
    """Format elapsed seconds as '1m 23.4s' or '5.2s'."""
    minutes, seconds = divmod(elapsed_seconds, 60)
    if minutes >= 1:
        return f"{int(minutes)}m {seconds:.1f}s"
    return f"{elapsed_seconds:.1f}s"


def _print_summary(
    bundle: ResultsBundle, bundle_path: Path, elapsed_seconds: float
) -> None:
    """Print a colorized run summary and per-evaluator table to stdout."""
    summary = bundle.summary
    agent = bundle.agent

    typer.echo("")
    _rule(color=_CYAN)
    typer.echo(f"{_CYAN}{_BOLD}  ybench  ·  Run Complete{_RESET}")
    _rule(color=_CYAN)
    typer.echo("")

    meta_rows: list[tuple[str, str]] = [
        ("Run ID", bundle.run_id),
        ("Test case", bundle.test_case.name),
        ("Repository", bundle.test_case.repo),
        ("Config hash", bundle.test_case.config_hash),
        (
            "Agent",
            f"{agent.name} ({agent.type}) · "
            f"{_status_color(agent.status)}{agent.status}{_RESET}",
        ),
        ("Elapsed", _format_elapsed(elapsed_seconds=elapsed_seconds)),
        ("Results JSON", str(bundle_path)),
    ]
    label_w = max(len(label) for label, _ in meta_rows)
    for label, value in meta_rows:
        typer.echo(f"  {_DIM}{label:<{label_w}}{_RESET}  {_WHITE}{value}{_RESET}")

    typer.echo("")
    name_w = max(
        [len("Evaluator"), *(len(r.evaluator) for r in bundle.evaluators)]
    )
    typer.echo(f"  {_DIM}{'Evaluator':<{name_w}}  {'Status':<8}  Message{_RESET}")
    typer.echo(f"  {'─' * name_w}  {'─' * 8}  {'─' * 20}")
    for result in bundle.evaluators:
        color = _status_color(result.status)
        typer.echo(
            f"  {_WHITE}{result.evaluator:<{name_w}}{_RESET}"
            f"  {color}{result.status:<8}{_RESET}"
            f"  {_DIM}{_truncate(result.message)}{_RESET}"
        )

    overall = summary.overall_status
    typer.echo("")
    typer.echo(
        f"  {_BOLD}Overall:{_RESET} {_status_color(overall)}{_BOLD}"
        f"{overall.upper()}{_RESET}"
        f"  {_DIM}{summary.passed} passed · {summary.failed} failed"
        f" · {summary.skipped} skipped{_RESET}"
    )
    typer.echo("")
    _rule(color=_CYAN)
    typer.echo("")


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to run config YAML"),
    output_dir: Path = typer.Option(
        Path("./results"),
        "--output-dir",
        "-o",
        help="Directory for result bundles, history, and exported artifacts",
    ),
    workspace_root: Path = typer.Option(
        DEFAULT_WORKSPACE_ROOT,
        "--workspace-root",
        help="Directory under which per-run workspaces are created",
    ),
    keep_workspace: bool = typer.Option(
        False,
        "--keep-workspace",
        help="Leave the workspace on disk after the run for debugging",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Run a ybench evaluation from a YAML config file."""
    progress: ProgressEvaluationObserver | None = None
    try:
        _configure_structlog(log_format=log_format)

        try:
            config = _load_config(config_path=config_path)
        except YBenchError as exc:
            typer.echo(str(exc))
            raise typer.Exit(code=EXIT_ERROR) from exc

        output_dir = output_dir.resolve()
        output_dir.mkdir(parents=True, exist_ok=True)

        observers: list[EvaluationObserver] = [StructlogEvaluationObserver()]
        if log_format != "json":
            progress = ProgressEvaluationObserver()
            observers.append(progress)

        orchestrator = EvaluationOrchestrator(
            workspace_manager=WorkspaceManager(
                root=workspace_root.resolve(),
                observer=StructlogWorkspaceObserver(),
            ),
            agent_factory=RegistryAgentFactory(observer=StructlogAgentObserver()),
            evaluator_registry=BuiltinEvaluatorRegistry(
                observer=StructlogEvaluatorObserver()
            ),
            result_sink=JsonResultSink(),
            observer=CompositeEvaluationObserver(observers=observers),
            keep_workspace=keep_workspace,
            export_dir=output_dir / _ARTIFACTS_SUBDIR,
            post_evaluation_registry=BuiltinPostEvaluationRegistry(
                observer=StructlogPostEvaluationObserver()
            ),
        )

        started_at = time.monotonic()
        bundle: ResultsBundle = asyncio.run(orchestrator.run_evaluation(config))
        elapsed_seconds = time.monotonic() - started_at

        bundle_path = output_dir / f"{_output_stem(bundle=bundle)}.json"
        bundle_path.write_text(bundle.model_dump_json(indent=2), encoding="utf-8")
        append_history(path=output_dir / HISTORY_FILENAME, bundle=bundle)

        _print_summary(
            bundle=bundle, bundle_path=bundle_path, elapsed_seconds=elapsed_seconds
        )

    except KeyboardInterrupt:
        typer.echo("Evaluation interrupted.")
        sys.exit(EXIT_ERROR)
    except YBenchError as exc:
        typer.echo(str(exc))
        sys.exit(EXIT_ERROR)
    except typer.Exit:
        raise
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(EXIT_ERROR)
    finally:
        if progress is not None:
            progress.close()

    if bundle.summary.overall_status == "failed":
        sys.exit(EXIT_FAILED)


@app.command()
def validate(
    config_path: Path = typer.Argument(..., help="Path to run config YAML"),
) -> None:
    """Load and validate a config file without running it."""
    _configure_structlog(log_format="console")
    try:
        config = _load_config(config_path=config_path)
    except YBenchError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=EXIT_ERROR) from exc

    registry = BuiltinEvaluatorRegistry(observer=StructlogEvaluatorObserver())
    typer.echo(f"{_GREEN}✓{_RESET} {config_path} is valid: {config.name}")
    typer.echo(f"  {_DIM}repo{_RESET}   {config.repo}")
    typer.echo(f"  {_DIM}agent{_RESET}  {config.agent.type}")
    for evaluator_config in config.evaluators:
        known = registry.resolve(evaluator_config.name) is not None
        marker = f"{_GREEN}✓{_RESET}" if known else f"{_YELLOW}?{_RESET}"
        suffix = "" if known else f"  {_DIM}(unknown, will be skipped){_RESET}"
        typer.echo(f"  {marker} {evaluator_config.name}{suffix}")
    hooks = BuiltinPostEvaluationRegistry(observer=StructlogPostEvaluationObserver())
    for hook_config in config.post_evaluation:
        known = hooks.resolve(hook_config.name) is not None
        marker = f"{_GREEN}✓{_RESET}" if known else f"{_YELLOW}?{_RESET}"
        suffix = "" if known else f"  {_DIM}(unknown, will be skipped){_RESET}"
        typer.echo(f"  {marker} post: {hook_config.name}{suffix}")


if __name__ == "__main__":
    app()
