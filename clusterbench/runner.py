"""
Sequential step runner.

A run is an ordered list of :class:`Stage` objects, each holding the steps of
one :class:`Phase`. Steps return integer exit statuses; the first non-zero
status stops the run and is reported back in a :class:`RunStatus`.
"""

from __future__ import annotations

import enum
import shlex
import subprocess
import typing as tp
from dataclasses import dataclass, field
from pathlib import Path

from .errors import BenchmarkError
from .logging_utils import get_logger, stage_header

# Exit status a POSIX shell reports for a command it cannot find
COMMAND_NOT_FOUND = 127


class Phase(enum.Enum):
    CHECK_REQS = "Checking requirements"
    SETUP_ENV = "Setting up virtual environment"
    BUILD_TOOL_A = "Building FastPCA"
    BUILD_TOOL_B = "Building Clustering"
    FETCH_DATA = "Fetching HP35 dataset"
    RUN_PCA = "Running dPCA"
    RUN_CLUSTERING = "Running clustering"
    RENAME = "Renaming states by population"
    DONE = "Done"


@dataclass(frozen=True)
class Step:
    label: str
    action: tp.Callable[[], int]
    argv: tuple[str, ...] = ()

    def __call__(self) -> int:
        return self.action()


@dataclass(frozen=True)
class Stage:
    phase: Phase
    steps: tuple[Step, ...]


@dataclass
class RunStatus:
    returncode: int = 0
    phase: Phase | None = None
    failed_step: str | None = None
    completed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def command_step(
    label: str,
    argv: tp.Sequence[tp.Union[str, Path]],
    cwd: tp.Union[str, Path, None] = None,
    env: tp.Optional[tp.Mapping[str, str]] = None,
    quiet: bool = False,
) -> Step:
    """Step that spawns ``argv`` and waits for it; no timeout."""
    args = tuple(str(a) for a in argv)
    logger = get_logger("clusterbench.runner")

    def action() -> int:
        logger.debug("Running: %s", shlex.join(args))
        try:
            completed = subprocess.run(
                args,
                cwd=cwd,
                env=dict(env) if env is not None else None,
                stdout=subprocess.DEVNULL if quiet else None,
                check=False,
            )
        except FileNotFoundError:
            logger.error("Command not found: %s", args[0])
            return COMMAND_NOT_FOUND
        except PermissionError:
            logger.error("Command not executable: %s", args[0])
            return COMMAND_NOT_FOUND - 1
        return shell_status(completed.returncode)

    return Step(label, action, args)


def shell_status(returncode: int) -> int:
    """Map a signal death (negative returncode) to 128 + signal, as a shell does."""
    return 128 - returncode if returncode < 0 else returncode


def python_step(label: str, func: tp.Callable[[], tp.Any]) -> Step:
    """Step running ``func`` in-process; errors become exit statuses."""
    logger = get_logger("clusterbench.runner")

    def action() -> int:
        try:
            func()
        except BenchmarkError as exc:
            logger.error("%s", exc)
            return exc.returncode
        except subprocess.CalledProcessError as exc:
            logger.error("%s", exc)
            return shell_status(exc.returncode) or 1
        except Exception as exc:
            # truncated archives (EOFError), bad encodings, corrupt xz streams
            logger.error("%s: %s: %s", label, type(exc).__name__, exc)
            return 1
        return 0

    return Step(label, action)


def run_stages(stages: tp.Iterable[Stage]) -> RunStatus:
    """Run every step in order, stopping at the first non-zero status."""
    logger = get_logger("clusterbench.runner")
    status = RunStatus()
    for stage in stages:
        status.phase = stage.phase
        stage_header(stage.phase.value)
        for step in stage.steps:
            logger.info("%s", step.label)
            return_val = step()
            if return_val != 0:
                logger.error(
                    "Step '%s' (%s) failed with exit status %d.",
                    step.label, stage.phase.name, return_val)
                status.returncode = return_val
                status.failed_step = step.label
                return status
            status.completed.append(step.label)
    status.phase = Phase.DONE
    return status
