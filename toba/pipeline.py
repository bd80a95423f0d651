"""Stage execution for the create pipeline."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any


class CodedError(Exception):
    """An error carrying a stable machine-readable code."""

    def __init__(self, code: str, message: str, cause: BaseException | None = None) -> None:
        self.code = code
        self.message = message
        self.cause = cause
        text = message if cause is None else f"{message}: {cause}"
        super().__init__(text)
        if cause is not None:
            self.__cause__ = cause


@dataclass
class Stage:
    """A named group of steps."""

    name: str
    steps: list = field(default_factory=list)


@dataclass(frozen=True)
class StepTiming:
    """When a step ran and how long it took."""

    stage: str
    name: str
    started_at: datetime
    finished_at: datetime
    duration: timedelta


def run_step(ctx, stage_name: str, step) -> tuple[StepTiming, Exception | None]:
    """Run step and return its timing together with the exception it raised, if any."""
    started_at = datetime.now()
    start = time.perf_counter()
    error: Exception | None = None
    try:
        step.run(ctx)
    except Exception as exc:  # the pipeline decides how to report step failures
        error = exc
    elapsed = time.perf_counter() - start
    finished_at = datetime.now()
    timing = StepTiming(
        stage=stage_name,
        name=step.name(),
        started_at=started_at,
        finished_at=finished_at,
        duration=timedelta(seconds=elapsed),
    )
    return timing, error


def _find_coded(err: BaseException | None) -> CodedError | None:
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, CodedError):
            return err
        seen.add(id(err))
        err = err.__cause__
    return None


def log_step_error(logger, step, err: BaseException) -> None:
    """Log a step failure, using the error code when one is present."""
    message = f"{step.name()}: {err}"
    coded = _find_coded(err)
    if coded is not None:
        logger.error_code(coded.code, message)
    else:
        logger.error(message)


@dataclass
class Pipeline:
    """Ordered stages of steps with optional timing recording."""

    explicit_stages: list[Stage] = field(default_factory=list)
    steps: list = field(default_factory=list)
    recorder: Any = None

    def stages(self) -> list[Stage]:
        """Return the configured stages, or one single-step stage per step."""
        if self.explicit_stages:
            return self.explicit_stages
        return [Stage(name=step.name(), steps=[step]) for step in self.steps]

    def _record_timing(self, timing: StepTiming) -> None:
        if self.recorder is not None:
            self.recorder.record_step_timing(timing)

    def run_sequential_stage(self, ctx, stage: Stage) -> None:
        """Run the stage's steps in order, stopping at the first failure."""
        for step in stage.steps:
            ctx.logger.step(step.name())
            timing, error = run_step(ctx, stage.name, step)
            self._record_timing(timing)
            if error is not None:
                log_step_error(ctx.logger, step, error)
                raise error
            ctx.logger.success(step.name())

    def run_parallel_stage(self, ctx, stage: Stage) -> None:
        """Run all the stage's steps at once and raise the first failure in stage order."""
        for step in stage.steps:
            ctx.logger.step(step.name())

        if not stage.steps:
            return

        with ThreadPoolExecutor(max_workers=len(stage.steps)) as pool:
            futures = [pool.submit(run_step, ctx, stage.name, step) for step in stage.steps]
            results = [future.result() for future in futures]

        first_error: Exception | None = None
        for step, (timing, error) in zip(stage.steps, results):
            self._record_timing(timing)
            if error is not None:
                log_step_error(ctx.logger, step, error)
                if first_error is None:
                    first_error = error
                continue
            ctx.logger.success(step.name())

        if first_error is not None:
            raise first_error