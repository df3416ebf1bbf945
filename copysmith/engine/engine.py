"""Pipeline engine - runs the 8 phases in order and reports progress."""

import logging
from collections.abc import Generator, Iterator
from dataclasses import dataclass

from pydantic import BaseModel

from ..clients.store import ArtifactStore
from ..config import DRAFT_MAX_ATTEMPTS, FINAL_MAX_ATTEMPTS, get_phase_config, get_phase_rationale
from ..errors import CopysmithError, PipelineError, RegenerationExhaustedError
from ..models.artifacts import DraftV0, FinalPackage, draft_text
from ..models.critique import CritiqueResult
from ..models.events import EventType, PipelineEvent
from ..models.run import PipelineResult, RunOptions, RunState, RunStatus
from ..models.task_spec import TaskSpec
from ..models.validation import ValidationResult
from ..services.critic import CriticService
from ..services.executor import PhaseExecutor
from ..services.phases import PHASES, PhaseSpec, build_user_message, load_prompt
from ..services.post_processor import post_process
from ..services.regeneration import RegenerationOutcome, regenerate
from ..services.validator import DraftValidator
from ..utils import new_run_id, preview

logger = logging.getLogger(__name__)

# Advisory progress lines for the incremental stream, by phase index
PHASE_THINKING: dict[int, list[str]] = {
    1: [
        "Analyzing target audience...",
        "Identifying reader fears and desires...",
        "Determining stance and voice...",
        "Building reader psychology model...",
    ],
    2: [
        "Structuring main claims hierarchy...",
        "Mapping proof points to claims...",
        "Preparing objection handlers...",
    ],
    3: [
        "Defining paragraph beats...",
        "Setting structural constraints...",
        "Adding forbidden word rules...",
    ],
    4: [
        "Generating draft with hard rules...",
        "Validating against forbidden words...",
        "Checking sentence structure...",
    ],
    5: [
        "Analyzing topic chains...",
        "Detecting cohesion breaks...",
        "Applying old to new flow...",
    ],
    6: [
        "Measuring sentence lengths...",
        "Inserting rhythm variation...",
        "Adjusting cadence...",
    ],
    7: [
        "Optimizing for F-pattern...",
        "Loading left edges...",
        "Formatting for scan...",
    ],
    8: [
        "Running quality checks...",
        "Generating variants...",
        "Packaging final output...",
    ],
}


@dataclass
class _Run:
    """Everything one execution of the pipeline owns."""
    task_spec: TaskSpec
    options: RunOptions
    state: RunState
    critique: CritiqueResult | None = None


class PipelineEngine:
    """Sequence the 8 phases, regenerate validated phases, gate the final output."""

    def __init__(
        self,
        executor: PhaseExecutor,
        validator: DraftValidator | None = None,
        critic: CriticService | None = None,
        store: ArtifactStore | None = None,
        strict: bool = False,
        draft_max_attempts: int = DRAFT_MAX_ATTEMPTS,
        final_max_attempts: int = FINAL_MAX_ATTEMPTS,
        thinking: dict[int, list[str]] | None = None,
    ):
        self.executor = executor
        self.validator = validator or DraftValidator()
        self.critic = critic
        self.store = store
        self.strict = strict
        self.max_attempts = {
            "draft_v0": draft_max_attempts,
            "final_package": final_max_attempts,
        }
        self.thinking = PHASE_THINKING if thinking is None else thinking

    # ===== Public API =====

    def run(self, task_spec: TaskSpec, options: RunOptions | None = None) -> PipelineResult:
        """Run the whole pipeline and return one buffered result."""
        run = self._new_run(task_spec, options)
        events = list(self._execute(run, include_thinking=False))
        return self._result(run, events)

    def stream(self, task_spec: TaskSpec, options: RunOptions | None = None) -> Iterator[PipelineEvent]:
        """Yield events as they happen. Closing the iterator stops before the next model call."""
        run = self._new_run(task_spec, options)
        yield from self._execute(run, include_thinking=True)

    # ===== Execution =====

    def _new_run(self, task_spec: TaskSpec, options: RunOptions | None) -> _Run:
        options = options or RunOptions(strict=self.strict)
        return _Run(task_spec=task_spec, options=options, state=RunState(run_id=new_run_id()))

    def _execute(self, run: _Run, include_thinking: bool) -> Iterator[PipelineEvent]:
        state = run.state
        state.start()
        logger.info(f"Run {state.run_id}: {run.task_spec.copy_type} for {run.task_spec.channel}")

        try:
            for phase in PHASES:
                if run.options.cancelled:
                    message = f"Run cancelled before phase {phase.index}"
                    logger.info(f"Run {state.run_id}: {message}")
                    state.fail(message, phase.index)
                    self._persist(run)
                    yield self._event(EventType.ERROR, phase, message=message, run_id=state.run_id)
                    return

                state.current_phase = phase.index
                yield self._event(EventType.PHASE_START, phase)

                if include_thinking:
                    for message in self.thinking.get(phase.index, []):
                        yield self._event(EventType.THINKING, phase, message=message)

                try:
                    artifact = yield from self._run_phase(run, phase)
                except Exception as e:
                    error = e if isinstance(e, PipelineError) else PipelineError(
                        f"Phase {phase.index} ({phase.name}) failed: {e}", phase.index, phase.name, cause=e
                    )
                    if isinstance(e, CopysmithError):
                        logger.error(f"Run {state.run_id}: {error}")
                    else:
                        logger.exception(f"Run {state.run_id}: unexpected error in phase {phase.index}")
                    state.fail(str(error), phase.index)
                    self._persist(run)
                    yield self._event(EventType.ERROR, phase, message=str(error), run_id=state.run_id)
                    return

                state.artifacts[phase.key] = artifact
                self._persist(run)
                yield self._event(EventType.ARTIFACT, phase, preview=preview(artifact))

            state.complete()
            self._persist(run)
            final = state.artifacts["final_package"]
            yield PipelineEvent(
                type=EventType.COMPLETE,
                message="Pipeline complete" + (" (best effort)" if state.best_effort else ""),
                data={
                    "run_id": state.run_id,
                    "final_artifact": final.model_dump(mode="json"),
                    "best_effort": state.best_effort,
                    "unresolved_violations": [v.to_dict() for v in state.unresolved_violations],
                },
            )
        except GeneratorExit:
            if state.status == RunStatus.RUNNING:
                state.fail(f"Stream closed during phase {state.current_phase}", state.current_phase)
                logger.info(f"Run {state.run_id}: stream closed by consumer")
                self._persist(run)
            raise

    def _run_phase(self, run: _Run, phase: PhaseSpec) -> Generator[PipelineEvent, None, BaseModel]:
        """Produce one phase's artifact, yielding validation events as attempts finish."""
        artifacts = run.state.artifacts
        missing = [key for key in phase.requires if key not in artifacts]
        if missing:
            raise PipelineError(
                f"Phase {phase.index} ({phase.name}) is missing upstream artifacts: {', '.join(missing)}",
                phase.index, phase.name,
            )

        config = get_phase_config(phase.key)
        logger.info(f"Phase {phase.index} ({phase.name}): {config.model}, {get_phase_rationale(phase.key)}")
        system_prompt = load_prompt(phase.key)

        def generate(feedback: str | None) -> BaseModel:
            prompt = build_user_message(phase.key, run.task_spec, artifacts, feedback)
            artifact = self.executor.execute(config, phase.schema, system_prompt, prompt)
            if phase.key == "final_package":
                # The returned final must be the text that was validated
                artifact = self._post_process(artifact)
            return artifact

        if not phase.validated:
            return generate(None)

        attempts = regenerate(
            generate,
            lambda artifact: self._validate(run, artifact),
            self.max_attempts[phase.key],
            label=phase.name,
        )
        while True:
            try:
                attempt = next(attempts)
            except StopIteration as done:
                outcome = done.value
                break
            yield self._validation_event(phase, attempt.number, attempt.validation)

        self._record_outcome(run, phase, outcome)

        if phase.key == "final_package":
            return (yield from self._gate_final(run, phase, generate, outcome))
        return outcome.output

    def _validate(self, run: _Run, artifact: BaseModel) -> ValidationResult:
        task_spec = run.task_spec
        beat_sheet = run.state.artifacts.get("beat_sheet")
        return self.validator.validate(
            draft_text(artifact) or "",
            task_spec.copy_type,
            beat_sheet=beat_sheet,
            beat_trace=artifact.beat_trace if isinstance(artifact, DraftV0) else None,
            length_budget=task_spec.length_budget if isinstance(artifact, FinalPackage) else None,
            extra_forbidden=task_spec.forbidden_words,
        )

    def _record_outcome(self, run: _Run, phase: PhaseSpec, outcome: RegenerationOutcome) -> None:
        if not outcome.best_effort:
            return
        if run.options.strict:
            raise RegenerationExhaustedError(
                f"{phase.name} still invalid after {outcome.attempt_count} attempts",
                violations=outcome.unresolved_violations,
            )
        run.state.best_effort = True
        run.state.unresolved_violations.extend(outcome.unresolved_violations)

    def _gate_final(self, run, phase, generate, outcome) -> Generator[PipelineEvent, None, BaseModel]:
        """Critic review; a failing critique earns one extra seeded attempt.

        The extra attempt replaces the chosen one only if it validates at
        least as well. Critic outages never fail the run.
        """
        if self.critic is None:
            return outcome.output

        artifact = outcome.output
        context = {
            "product": run.task_spec.inputs.product_or_topic,
            "audience": run.task_spec.audience.who,
            "goal": run.task_spec.goal.primary_action,
            "subtype": run.options.subtype,
        }
        try:
            critique = self.critic.critique(artifact.final, run.task_spec.copy_type, context)
        except CopysmithError as e:
            logger.warning(f"Run {run.state.run_id}: critic unavailable, keeping final as is: {e}")
            return artifact

        run.critique = critique
        yield self._event(
            EventType.VALIDATION, phase,
            message=f"Critique: {'pass' if critique.overall_pass else 'fail'} ({critique.score}/10)",
            critique=critique.model_dump(mode="json"),
        )
        if critique.overall_pass:
            return artifact

        feedback = f"AN EDITOR REJECTED THE PREVIOUS FINAL COPY:\n\n{critique.regeneration_instructions}"
        try:
            candidate = generate(feedback)
        except CopysmithError as e:
            logger.warning(f"Run {run.state.run_id}: critic-seeded attempt failed, keeping original: {e}")
            return artifact

        validation = self._validate(run, candidate)
        yield self._validation_event(phase, outcome.attempt_count + 1, validation)
        if validation.score < outcome.validation.score:
            logger.info(f"Run {run.state.run_id}: critic-seeded attempt scored lower, keeping original")
            return artifact

        logger.info(f"Run {run.state.run_id}: using critic-seeded final (score={validation.score:.2f})")
        if outcome.best_effort:
            # The replaced attempt's violations no longer apply
            for v in outcome.unresolved_violations:
                run.state.unresolved_violations.remove(v)
        if validation.is_valid:
            run.state.best_effort = bool(run.state.unresolved_violations)
        else:
            run.state.best_effort = True
            run.state.unresolved_violations.extend(validation.violations)
        return candidate

    def _post_process(self, artifact: FinalPackage) -> FinalPackage:
        result = post_process(artifact.final)
        if not result.changed:
            return artifact
        note = f"post-processed: {', '.join(result.changes)}"
        return artifact.model_copy(update={"final": result.text, "notes": (*artifact.notes, note)})

    # ===== Helpers =====

    def _persist(self, run: _Run) -> None:
        """Write a snapshot. Store failures are logged, never raised."""
        if self.store is None:
            return
        try:
            self.store.save_snapshot(run.state.run_id, run.state.snapshot(), run.options.project_id)
        except Exception as e:
            logger.warning(f"Run {run.state.run_id}: failed to persist snapshot: {e}")

    def _validation_event(self, phase: PhaseSpec, attempt: int, validation: ValidationResult) -> PipelineEvent:
        status = "valid" if validation.is_valid else f"{len(validation.violations)} violations"
        return self._event(
            EventType.VALIDATION, phase,
            message=f"Attempt {attempt}: {status} (score {validation.score:.2f})",
            attempt=attempt,
            is_valid=validation.is_valid,
            score=validation.score,
            violations=[v.to_dict() for v in validation.violations],
        )

    @staticmethod
    def _event(
        event_type: EventType,
        phase: PhaseSpec,
        message: str | None = None,
        preview: str | None = None,
        **data,
    ) -> PipelineEvent:
        return PipelineEvent(
            type=event_type,
            phase=phase.index,
            name=phase.name,
            message=message,
            preview=preview,
            data=data,
        )

    @staticmethod
    def _result(run: _Run, events: list[PipelineEvent]) -> PipelineResult:
        state = run.state
        success = state.status == RunStatus.COMPLETED
        return PipelineResult(
            success=success,
            run_id=state.run_id,
            artifacts=dict(state.artifacts),
            final_artifact=state.artifacts.get("final_package") if success else None,
            error=state.error_message,
            failed_phase=state.failed_phase,
            best_effort=state.best_effort,
            unresolved_violations=list(state.unresolved_violations),
            critique=run.critique,
            events=events,
        )
