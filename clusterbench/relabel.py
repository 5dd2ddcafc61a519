"""Rename microstates by population.

The most populated state becomes 1, the next 2, and so on; equally populated
states keep the order of their original labels. The result is written next to
the input with a ``Sorted`` suffix. Runnable as ``python -m clusterbench.relabel -f FILE``.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import typer

from .errors import RelabelError
from .logging_utils import get_logger

SUFFIX = "Sorted"


def population_ranking(states: np.ndarray) -> dict[int, int]:
    """Map each original label to its 1-based population rank."""
    labels, counts = np.unique(states, return_counts=True)
    # lexsort sorts by the last key first: descending count, then label
    order = np.lexsort((labels, -counts))
    return {int(labels[idx]): rank for rank, idx in enumerate(order, start=1)}


def rename_by_population(path: str | Path, suffix: str = SUFFIX) -> Path:
    logger = get_logger("clusterbench.relabel")
    path = Path(path)
    if not path.is_file():
        raise RelabelError(f"State trajectory not found: {path}")
    try:
        states = np.loadtxt(path, dtype=np.int64, ndmin=1)
    except ValueError as exc:
        raise RelabelError(f"Could not read integer states from {path}: {exc}") from exc
    if states.ndim != 1:
        raise RelabelError(f"Expected a single column of states in {path}")
    if states.size == 0:
        raise RelabelError(f"State trajectory {path} is empty")

    labels, inverse = np.unique(states, return_inverse=True)
    ranking = population_ranking(states)
    new_labels = np.array([ranking[int(label)] for label in labels], dtype=np.int64)
    renamed = new_labels[inverse.reshape(-1)]

    out = path.with_name(path.name + suffix)
    np.savetxt(out, renamed, fmt="%d")
    logger.info("Renamed %d states of %d frames -> %s", len(labels), states.size, out)
    return out


app = typer.Typer(add_completion=False, context_settings={"help_option_names": ["-h", "--help"]})


@app.command()
def relabel_command(
    file: Path = typer.Option(..., "--file", "-f", help="Microstate trajectory, one state per frame"),
) -> None:
    """Renumber states of FILE by population and write FILE + 'Sorted'."""
    try:
        rename_by_population(file)
    except RelabelError as exc:
        get_logger("clusterbench.relabel").error("%s", exc)
        raise typer.Exit(code=exc.returncode) from exc


def main():
    app()


if __name__ == "__main__":
    main()
