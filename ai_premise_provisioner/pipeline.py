from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .context import StepContext

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single idempotent step.

    is_satisfied() is the precondition: True means the host already has what
    run() would produce, so the step is skipped without side effects.
    A failing `fatal` step stops the pipeline; any other failure is logged
    as a warning and the pipeline carries on.
    """

    step_id: str
    fatal: bool

    def is_satisfied(self, ctx: StepContext) -> bool:
        ...

    def run(self, ctx: StepContext) -> None:
        ...


class StepFailed(RuntimeError):
    def __init__(self, step_id: str, cause: BaseException):
        self.step_id = step_id
        self.cause = cause
        super().__init__(f"Step {step_id} failed: {cause}")


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    skipped_steps: List[str]
    failed_steps: List[str]


def run_pipeline(
    *,
    ctx: StepContext,
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
) -> PipelineResult:
    """Run steps in order: check, then skip or mutate. No retries."""

    ran: List[str] = []
    skipped: List[str] = []
    failed: List[str] = []

    known = [s.step_id for s in steps]
    for bound in (start_at, stop_after):
        if bound is not None and bound not in known:
            raise ValueError(f"Unknown step_id {bound!r} (known: {', '.join(known)})")

    started = start_at is None
    exe = ctx.execution

    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                continue

        exe["current_step"] = step.step_id

        try:
            if (not force) and step.is_satisfied(ctx):
                logger.info("Skipping step %s (already satisfied)", step.step_id)
                skipped.append(step.step_id)
            else:
                logger.info("Running step %s", step.step_id)
                step.run(ctx)
                ran.append(step.step_id)
        except Exception as e:
            if step.fatal:
                logger.error("Step %s failed: %s", step.step_id, e)
                raise StepFailed(step.step_id, e) from e
            logger.warning("Step %s failed, continuing: %s", step.step_id, e)
            failed.append(step.step_id)
            exe.setdefault("warnings", []).append({"step": step.step_id, "message": str(e)})

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    exe["current_step"] = None
    return PipelineResult(ran_steps=ran, skipped_steps=skipped, failed_steps=failed)
