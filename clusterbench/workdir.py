"""Working directory owned by a single benchmark run."""

from __future__ import annotations

import shutil
import typing as tp
from pathlib import Path

import typer

from .errors import WorkdirConflictError
from .logging_utils import get_logger

Confirm = tp.Callable[[Path], bool]


def confirm_removal(path: Path, assume_yes: bool = False) -> bool:
    """Ask before ``rm -r``; a closed stdin counts as "no"."""
    if assume_yes:
        return True
    try:
        return typer.confirm(f"Remove directory {path} and everything in it?", default=True)
    except typer.Abort:
        return False


class WorkingDirectory:
    """
    Create ``path`` fresh for a run and discard it unless the run succeeded.

    An existing directory at ``path`` is left over from an earlier run; it is
    removed (after confirmation) before the new run starts, and the run is
    refused with WorkdirConflictError when removal is declined. On exit the
    directory is removed, again after confirmation, unless :meth:`keep` was
    called. This also happens when the block raises or is interrupted.
    """

    def __init__(self, path: tp.Union[str, Path], confirm: Confirm):
        self.path = Path(path)
        self.confirm = confirm
        self._keep = False
        self.logger = get_logger("clusterbench.workdir")

    def __enter__(self) -> "WorkingDirectory":
        if self.path.exists():
            self.logger.warning("Working directory %s already exists.", self.path)
            if not self.confirm(self.path):
                raise WorkdirConflictError(
                    f"Refusing to run: {self.path} exists and was not removed.")
            self._remove()
        self.path.mkdir(parents=True)
        self.logger.debug("Created working directory %s", self.path)
        return self

    def keep(self) -> None:
        self._keep = True

    def __exit__(self, exc_type, exc, tb) -> bool:
        if not self._keep:
            self.discard()
        return False

    def discard(self) -> None:
        if not self.path.exists():
            return
        if self.confirm(self.path):
            self._remove()
        else:
            self.logger.warning("Leaving partial results in %s.", self.path)

    def _remove(self) -> None:
        if self.path.is_dir() and not self.path.is_symlink():
            shutil.rmtree(self.path)
        else:
            self.path.unlink()
        self.logger.info("Removed %s", self.path)
