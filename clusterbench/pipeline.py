"""
High-level orchestration of the HP35 clustering benchmark.

This module ties the ordered stages to the working directory that holds their
output: a failed or interrupted run leaves nothing behind, a successful one
leaves the microstate trajectory in ``<workdir>/clustering/microstates``.
"""

from __future__ import annotations

import typing as tp
from functools import partial

from .config import RunConfig
from .logging_utils import get_logger
from .runner import RunStatus, Stage, run_stages
from .stages import build_stages
from .workdir import Confirm, WorkingDirectory, confirm_removal


def run_benchmark(
    config: RunConfig,
    stages: tp.Optional[tp.Sequence[Stage]] = None,
    confirm: tp.Optional[Confirm] = None,
) -> RunStatus:
    """
    Run the benchmark end-to-end:
    1) check prerequisites and set up the virtual environment
    2) clone and compile FastPCA and Clustering
    3) fetch the HP35 dihedrals and run dPCA followed by the clustering chain
    4) rename the resulting microstates by population

    Returns the run status; ``status.returncode`` is the exit status of the
    first failing command, or 0.

    Raises WorkdirConflictError when the working directory already exists and
    its removal is declined.
    """
    logger = get_logger("clusterbench.pipeline")
    if confirm is None:
        confirm = partial(confirm_removal, assume_yes=config.assume_yes)
    if stages is None:
        stages = build_stages(config)

    with WorkingDirectory(config.workdir, confirm) as workdir:
        status = run_stages(stages)
        if status.ok:
            workdir.keep()

    if status.ok:
        logger.info("Microstate trajectory written to: %s", config.final_output)
    else:
        logger.warning(
            "Benchmark aborted during %s; exit status %d.",
            status.phase.name if status.phase else "startup", status.returncode)
    return status
