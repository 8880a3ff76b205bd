"""EvaluationOrchestrator — drives one benchmark run from workspace to ResultsBundle."""

import asyncio
import hashlib
import json
import re
import time
import traceback
from datetime import UTC, datetime
from pathlib import Path

from ybench.agent.domain.agent import Agent
from ybench.agent.domain.factory import AgentFactory
from ybench.agent.domain.log import (
    AgentInfo,
    AgentLog,
    ExecutionInfo,
    LogEnvironment,
    ModelInfo,
    TokenUsage,
)
from ybench.agent.domain.result import AgentError, AgentExecutionResult
from ybench.config.domain.evaluator import EvaluatorConfig
from ybench.config.domain.post_evaluation import PostEvaluationConfig
from ybench.config.domain.run import RunConfig
from ybench.core.environment import EnvironmentInfo, detect_environment
from ybench.core.errors import YBenchError
from ybench.evaluation.application.errors import RunConfigurationError
from ybench.evaluation.domain.bundle import (
    AgentSummary,
    ArtifactManifest,
    BundleSummary,
    ExecutionEnvironment,
    ExecutionSummary,
    ResultsBundle,
    RunIdentity,
)
from ybench.evaluation.domain.observer import EvaluationObserver
from ybench.evaluation.domain.sink import ResultSink
from ybench.evaluator.domain.context import EvaluationContext
from ybench.evaluator.domain.evaluator import Evaluator
from ybench.evaluator.domain.registry import EvaluatorRegistry
from ybench.evaluator.domain.result import EvaluationErrorDetail, EvaluationResult
from ybench.git.infrastructure.client import GitClient, url_is_local_path
from ybench.post_evaluation.domain.context import PostEvaluationContext
from ybench.post_evaluation.domain.registry import PostEvaluationRegistry
from ybench.post_evaluation.domain.result import PostEvaluationResult
from ybench.workspace.domain.provider import WorkspaceProvider
from ybench.workspace.domain.workspace import Workspace

_UNSAFE_ARTIFACT_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_RESULTS_FALLBACK = "results.json"


class EvaluationOrchestrator:
    """Runs the agent in a fresh workspace, fans out to evaluators, and persists results.

    Only configuration problems and workspace acquisition failures raise.
    Everything after the workspace exists degrades into the returned bundle:
    a failed or timed-out agent is recorded and evaluation proceeds, and every
    evaluator problem becomes a `skipped` result for that evaluator alone.
    Configured post-evaluation hooks run once the bundle is written; their
    outcomes are reported to the observer and never change the bundle.
    """

    def __init__(
        self,
        workspace_manager: WorkspaceProvider,
        agent_factory: AgentFactory,
        evaluator_registry: EvaluatorRegistry,
        result_sink: ResultSink,
        observer: EvaluationObserver,
        environment: EnvironmentInfo | None = None,
        keep_workspace: bool = False,
        export_dir: Path | None = None,
        git: GitClient | None = None,
        post_evaluation_registry: PostEvaluationRegistry | None = None,
    ) -> None:
        self._workspace_manager = workspace_manager
        self._agent_factory = agent_factory
        self._evaluator_registry = evaluator_registry
        self._result_sink = result_sink
        self._observer = observer
        self._environment = environment
        self._keep_workspace = keep_workspace
        self._export_dir = export_dir
        self._git = git
        self._post_evaluation_registry = post_evaluation_registry

    async def run_evaluation(self, config: RunConfig) -> ResultsBundle:
        """Execute one complete evaluation and return its ResultsBundle.

        Raises:
            RunConfigurationError: if the repository reference is unusable.
            AgentTypeNotSupportedError, AgentConfigurationError: if the agent
                configuration cannot be resolved.
            WorkspaceError, LockedError: if the workspace cannot be acquired.
        """
        _check_repository(config)
        agent = self._agent_factory.create(config.agent)

        self._observer.evaluation_started(
            config_name=config.name,
            evaluator_names=[e.name for e in config.evaluators],
        )
        started_at = datetime.now(UTC)
        start = time.monotonic()

        workspace = await self._workspace_manager.create_workspace(config)
        run_id = workspace.run_id
        self._observer.evaluation_workspace_ready(
            run_id=run_id, root_dir=str(workspace.paths.root_dir)
        )
        try:
            bundle = await self._run_in_workspace(
                config=config,
                agent=agent,
                workspace=workspace,
                started_at=started_at,
                start=start,
            )
        finally:
            if self._keep_workspace:
                self._observer.evaluation_workspace_retained(
                    run_id=run_id, root_dir=str(workspace.paths.root_dir)
                )
            else:
                await self._workspace_manager.cleanup(workspace)

        self._observer.evaluation_completed(
            run_id=run_id,
            overall_status=bundle.summary.overall_status,
            elapsed_seconds=time.monotonic() - start,
        )
        return bundle

    async def _run_in_workspace(
        self,
        config: RunConfig,
        agent: Agent,
        workspace: Workspace,
        started_at: datetime,
        start: float,
    ) -> ResultsBundle:
        run_id = workspace.run_id
        paths = workspace.paths

        execution = await self._execute_agent(run_id, agent, workspace, config)
        agent_log = self._normalize_log(run_id, agent, execution)

        context = EvaluationContext(
            modified_dir=paths.modified_dir,
            expected_dir=paths.expected_dir,
            artifacts_dir=paths.artifacts_dir,
            evaluator_artifacts_dir=paths.evaluator_artifacts_dir,
            agent_log=agent_log,
            run_config=config,
        )
        if config.skip_evaluators_when_unchanged and not await self._has_changes(
            run_id, config, workspace
        ):
            self._observer.evaluation_no_changes(run_id=run_id)
            results = [
                EvaluationResult.skipped(
                    evaluator=e.name,
                    message="Evaluation skipped: agent produced no changes",
                )
                for e in config.evaluators
            ]
        else:
            results = await self._run_evaluators(run_id, config.evaluators, context)

        log_path = await self._persist_agent_log(run_id, paths.artifacts_dir, agent_log)
        manifest = await self._build_manifest(run_id, paths.artifacts_dir, log_path)
        environment = (
            self._environment if self._environment is not None else detect_environment()
        )
        bundle = ResultsBundle(
            run_id=run_id,
            test_case=RunIdentity(
                name=config.name,
                description=config.description,
                repo=config.repo,
                branch=config.branch,
                commit=config.commit,
                expected_branch=config.expected,
                config_hash=config_hash(config),
            ),
            execution=ExecutionSummary(
                started_at=started_at,
                completed_at=datetime.now(UTC),
                duration_ms=int((time.monotonic() - start) * 1000),
                ybench_version=environment.ybench_version,
                environment=ExecutionEnvironment(
                    os=environment.os,
                    arch=environment.arch,
                    python_version=environment.python_version,
                    workspace_dir=str(paths.root_dir),
                ),
            ),
            agent=AgentSummary(
                type=config.agent.type,
                name=agent.name,
                status=execution.status,
                exit_code=execution.exit_code,
                duration_ms=execution.duration_ms,
                log_path=log_path,
                errors=[e.message for e in execution.errors],
            ),
            evaluators=results,
            summary=BundleSummary.from_results(results),
            artifacts=manifest,
        )

        results_path: Path | None = None
        try:
            results_path = await asyncio.to_thread(
                self._result_sink.write_bundle, paths.artifacts_dir, bundle
            )
        except OSError as exc:
            self._observer.evaluation_persist_failed(run_id=run_id, reason=str(exc))
        else:
            self._observer.evaluation_results_persisted(
                run_id=run_id, path=str(results_path)
            )

        if config.post_evaluation:
            await self._run_post_evaluations(
                run_id=run_id,
                hook_configs=config.post_evaluation,
                bundle=bundle,
                bundle_path=results_path,
                workspace=workspace,
            )

        if self._export_dir is not None:
            try:
                exported = await asyncio.to_thread(
                    self._result_sink.export,
                    paths.artifacts_dir,
                    self._export_dir,
                    run_id,
                )
            except OSError as exc:
                self._observer.evaluation_export_failed(run_id=run_id, reason=str(exc))
            else:
                self._observer.evaluation_results_exported(
                    run_id=run_id, path=str(exported)
                )
        return bundle

    async def _execute_agent(
        self, run_id: str, agent: Agent, workspace: Workspace, config: RunConfig
    ) -> AgentExecutionResult:
        self._observer.evaluation_agent_started(run_id=run_id, agent=agent.name)
        started_at = datetime.now(UTC)
        start = time.monotonic()
        try:
            result = await agent.execute(workspace.paths, config.timeout_ms)
        except Exception as exc:
            # Agents report their own failures; this covers adapter defects.
            completed_at = datetime.now(UTC)
            result = AgentExecutionResult(
                exit_code=None,
                status="failed",
                raw_output="",
                started_at=started_at,
                completed_at=completed_at,
                duration_ms=int((time.monotonic() - start) * 1000),
                errors=[
                    AgentError(
                        message=f"Agent adapter error: {exc}",
                        timestamp=completed_at,
                        stack_trace="".join(traceback.format_exception(exc)),
                    )
                ],
                working_directory=str(workspace.paths.modified_dir),
            )
        self._observer.evaluation_agent_finished(
            run_id=run_id,
            agent=agent.name,
            status=result.status,
            duration_ms=result.duration_ms,
        )
        return result

    def _normalize_log(
        self, run_id: str, agent: Agent, execution: AgentExecutionResult
    ) -> AgentLog:
        try:
            return agent.normalize_log(execution.raw_output, execution)
        except Exception as exc:
            self._observer.evaluation_agent_log_fallback(run_id=run_id, reason=str(exc))
            return _fallback_log(agent.name, execution)

    async def _has_changes(
        self, run_id: str, config: RunConfig, workspace: Workspace
    ) -> bool:
        git = self._git if self._git is not None else GitClient(config.git_timeout_ms)
        try:
            return await git.has_changes(workspace.paths.modified_dir)
        except YBenchError as exc:
            self._observer.evaluation_change_check_failed(
                run_id=run_id, reason=str(exc)
            )
            return True

    async def _run_evaluators(
        self,
        run_id: str,
        evaluator_configs: list[EvaluatorConfig],
        context: EvaluationContext,
    ) -> list[EvaluationResult]:
        """Run every configured evaluator concurrently; results keep config order."""
        async with asyncio.TaskGroup() as tg:
            tasks = [
                tg.create_task(self._run_one_evaluator(run_id, cfg, context))
                for cfg in evaluator_configs
            ]
        return [task.result() for task in tasks]

    async def _run_one_evaluator(
        self,
        run_id: str,
        evaluator_config: EvaluatorConfig,
        context: EvaluationContext,
    ) -> EvaluationResult:
        """Resolve and run one evaluator. Never raises."""
        name = evaluator_config.name
        start = time.monotonic()
        try:
            evaluator = self._evaluator_registry.resolve(name)
            if evaluator is None:
                self._observer.evaluator_not_found(run_id=run_id, evaluator=name)
                return EvaluationResult.skipped(
                    evaluator=name,
                    message=f"Unknown evaluator: {name}",
                    error=EvaluationErrorDetail(
                        message=f"Evaluator '{name}' not found"
                    ),
                )
            evaluator_context = context.for_evaluator(
                name=name,
                config=evaluator_config.config,
                artifacts_subdir=_artifact_subdir(name),
            )
            self._observer.evaluator_started(run_id=run_id, evaluator=name)
            result = await self._evaluate_within_timeout(
                run_id=run_id,
                name=name,
                evaluator=evaluator,
                context=evaluator_context,
                timeout_ms=evaluator_config.timeout_ms,
                start=start,
            )
            if not isinstance(result, EvaluationResult):
                raise TypeError(
                    f"evaluate() returned {type(result).__name__}, "
                    "not EvaluationResult"
                )
        except Exception as exc:
            self._observer.evaluator_crashed(
                run_id=run_id, evaluator=name, reason=str(exc)
            )
            result = EvaluationResult.skipped(
                evaluator=name,
                message=f"Evaluator error: {exc}",
                duration_ms=_elapsed_ms(start),
                error=EvaluationErrorDetail.from_exception(exc),
            )

        self._observer.evaluator_completed(
            run_id=run_id,
            evaluator=name,
            status=result.status,
            duration_ms=result.duration_ms,
        )
        return result

    async def _evaluate_within_timeout(
        self,
        run_id: str,
        name: str,
        evaluator: Evaluator,
        context: EvaluationContext,
        timeout_ms: int | None,
        start: float,
    ) -> EvaluationResult:
        """Run the evaluator under its deadline; only an expired deadline is a timeout."""
        try:
            async with asyncio.timeout(
                timeout_ms / 1000 if timeout_ms is not None else None
            ) as deadline:
                return await _guarded_evaluate(evaluator, context)
        except TimeoutError as exc:
            if timeout_ms is None or not deadline.expired():
                raise
            self._observer.evaluator_timed_out(
                run_id=run_id, evaluator=name, timeout_ms=timeout_ms
            )
            return EvaluationResult.skipped(
                evaluator=name,
                message=f"Evaluator timed out after {timeout_ms}ms",
                duration_ms=_elapsed_ms(start),
                error=EvaluationErrorDetail(
                    message=f"Evaluator '{name}' exceeded timeout of {timeout_ms}ms",
                    stack_trace="".join(traceback.format_exception(exc)),
                ),
            )

    async def _build_manifest(
        self, run_id: str, artifacts_dir: Path, log_path: str
    ) -> ArtifactManifest:
        try:
            return await asyncio.to_thread(
                self._result_sink.build_manifest, artifacts_dir
            )
        except OSError as exc:
            self._observer.evaluation_persist_failed(run_id=run_id, reason=str(exc))
            return ArtifactManifest(agent_log=log_path, results=_RESULTS_FALLBACK)

    async def _run_post_evaluations(
        self,
        run_id: str,
        hook_configs: list[PostEvaluationConfig],
        bundle: ResultsBundle,
        bundle_path: Path | None,
        workspace: Workspace,
    ) -> list[PostEvaluationResult]:
        """Run every configured hook concurrently; hook outcomes never affect the run."""
        async with asyncio.TaskGroup() as tg:
            tasks = [
                tg.create_task(
                    self._run_one_post_evaluation(
                        run_id=run_id,
                        hook_config=cfg,
                        context=PostEvaluationContext(
                            bundle=bundle,
                            bundle_path=bundle_path,
                            artifacts_dir=workspace.paths.artifacts_dir,
                            workspace_dir=workspace.paths.root_dir,
                            config=cfg.config,
                        ),
                    )
                )
                for cfg in hook_configs
            ]
        return [task.result() for task in tasks]

    async def _run_one_post_evaluation(
        self,
        run_id: str,
        hook_config: PostEvaluationConfig,
        context: PostEvaluationContext,
    ) -> PostEvaluationResult:
        """Resolve and run one hook. Never raises."""
        name = hook_config.name
        start = time.monotonic()
        try:
            hook = (
                self._post_evaluation_registry.resolve(name)
                if self._post_evaluation_registry is not None
                else None
            )
            if hook is None:
                self._observer.post_evaluation_not_found(run_id=run_id, hook=name)
                return PostEvaluationResult.of(
                    post_evaluator=name,
                    status="skipped",
                    message=f"Unknown post-evaluation type: {name}",
                )
            if not await hook.check_preconditions(context):
                result = PostEvaluationResult.of(
                    post_evaluator=name,
                    status="skipped",
                    message="Preconditions not met",
                    duration_ms=_elapsed_ms(start),
                )
            else:
                result = await hook.execute(context)
            if not isinstance(result, PostEvaluationResult):
                raise TypeError(
                    f"execute() returned {type(result).__name__}, "
                    "not PostEvaluationResult"
                )
        except Exception as exc:
            self._observer.post_evaluation_crashed(
                run_id=run_id, hook=name, reason=str(exc)
            )
            result = PostEvaluationResult.of(
                post_evaluator=name,
                status="failed",
                message="Unexpected error during execution",
                duration_ms=_elapsed_ms(start),
                error=EvaluationErrorDetail.from_exception(exc),
            )

        self._observer.post_evaluation_completed(
            run_id=run_id,
            hook=name,
            status=result.status,
            duration_ms=result.duration_ms,
        )
        return result

    async def _persist_agent_log(
        self, run_id: str, artifacts_dir: Path, agent_log: AgentLog
    ) -> str:
        try:
            path = await asyncio.to_thread(
                self._result_sink.write_agent_log, artifacts_dir, agent_log
            )
        except OSError as exc:
            self._observer.evaluation_persist_failed(run_id=run_id, reason=str(exc))
            return ""
        return path.relative_to(artifacts_dir).as_posix()


async def _guarded_evaluate(
    evaluator: Evaluator, context: EvaluationContext
) -> EvaluationResult:
    if evaluator.requires_expected_reference and context.expected_dir is None:
        return EvaluationResult.skipped(
            evaluator=evaluator.name,
            message="Expected reference required but not configured",
            error=EvaluationErrorDetail(
                message=f"Evaluator '{evaluator.name}' requires an expected branch"
            ),
        )
    if not await evaluator.check_preconditions(context):
        return EvaluationResult.skipped(
            evaluator=evaluator.name,
            message="Preconditions not met",
            error=EvaluationErrorDetail(
                message=f"Evaluator '{evaluator.name}' preconditions not met"
            ),
        )
    return await evaluator.evaluate(context)


def _check_repository(config: RunConfig) -> None:
    if url_is_local_path(config.repo) and not Path(config.repo).exists():
        raise RunConfigurationError(
            reason=f"repository path does not exist: {config.repo}"
        )


def config_hash(config: RunConfig) -> str:
    """First 16 hex chars of the sha256 of the canonical config JSON."""
    canonical = json.dumps(
        config.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _artifact_subdir(name: str) -> str:
    return _UNSAFE_ARTIFACT_CHARS.sub("-", name)


def _fallback_log(agent_name: str, execution: AgentExecutionResult) -> AgentLog:
    environment = detect_environment()
    return AgentLog(
        agent=AgentInfo(name=agent_name, adapter_version="unknown"),
        model=ModelInfo(),
        execution=ExecutionInfo(
            started_at=execution.started_at,
            completed_at=execution.completed_at,
            duration_ms=execution.duration_ms,
            exit_code=execution.exit_code,
            status=execution.status,
        ),
        messages=[],
        usage=TokenUsage(),
        errors=execution.errors,
        environment=LogEnvironment(
            **environment.model_dump(),
            working_directory=execution.working_directory,
        ),
    )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
