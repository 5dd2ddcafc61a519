"""Command-line interface for clusterbench.

The command accepts only ``-h`` and a repeatable ``-v``. Anything else is a
usage error and exits with status 1 before any directory is touched.
"""

from __future__ import annotations

import typing as tp

import typer

from .config import RunConfig
from .errors import WorkdirConflictError
from .logging_utils import get_logger, set_global_log_level
from .pipeline import run_benchmark

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h"]},
)


def _run_impl(verbose: int) -> int:
    level = "DEBUG" if verbose >= 1 else "INFO"
    set_global_log_level(level)
    logger = get_logger("clusterbench.cli")
    config = RunConfig.from_env(verbosity=verbose)
    logger.debug("Starting benchmark with config: %s", config)
    try:
        status = run_benchmark(config)
    except WorkdirConflictError as exc:
        logger.error("%s", exc)
        return exc.returncode
    return status.returncode


@app.command("run")
def run_command(
    ctx: typer.Context,
    verbose: int = typer.Option(0, "-v", count=True, help="Increase verbosity (repeatable)"),
) -> None:
    """Reproduce the HP35 clustering benchmark in a fresh working directory.

    Set CLUSTERBENCH_WORKDIR to choose the directory and
    CLUSTERBENCH_ASSUME_YES=1 to skip removal prompts.
    """
    ctx.obj["returncode"] = _run_impl(verbose)


def main(argv: tp.Optional[list[str]] = None) -> int:
    """Run the CLI and return the process exit status.

    The benchmark's own status is handed back through ``ctx.obj``; any other
    exit (help, usage errors, aborts) comes from typer itself, where usage
    errors are reported with status 1 instead of typer's 2.
    """
    command = typer.main.get_command(app)
    outcome: dict[str, int] = {}
    try:
        command.main(args=argv, prog_name="clusterbench", standalone_mode=True, obj=outcome)
    except SystemExit as exc:
        if "returncode" in outcome:
            return outcome["returncode"]
        return 0 if exc.code in (0, None) else 1
    return outcome.get("returncode", 0)


if __name__ == "__main__":
    raise SystemExit(main())
