# Small text/file helpers used between the external tool invocations

import bz2
import gzip
import lzma
import shutil
import typing as tp
from pathlib import Path

from .errors import BenchmarkError, ColumnSelectionError

__all__ = ["select_columns", "decompress_keep", "write_window_file"]

_OPENERS: dict[str, tp.Callable[..., tp.IO[bytes]]] = {
    ".bz2": bz2.open,
    ".gz": gzip.open,
    ".xz": lzma.open,
}


def select_columns(
    src: tp.Union[str, Path],
    dest: tp.Union[str, Path],
    columns: tp.Sequence[int],
) -> Path:
    """
    Copy the given 1-based whitespace-delimited columns of ``src`` to ``dest``.

    Tokens are copied verbatim (no float reformatting) in the order given by
    ``columns`` and joined by a single space. Blank lines are skipped.

    Raises
    ------
    ColumnSelectionError
        If a column index is < 1 or a row has fewer columns than requested.
    """
    if not columns or min(columns) < 1:
        raise ColumnSelectionError(f"Invalid column selection: {list(columns)}")
    src = Path(src)
    dest = Path(dest)
    needed = max(columns)
    with src.open(encoding="utf-8") as fin, dest.open("w", encoding="utf-8") as fout:
        for lineno, line in enumerate(fin, start=1):
            fields = line.split()
            if not fields:
                continue
            if len(fields) < needed:
                raise ColumnSelectionError(
                    f"{src}:{lineno}: expected at least {needed} columns, found {len(fields)}"
                )
            fout.write(" ".join(fields[c - 1] for c in columns))
            fout.write("\n")
    return dest


def decompress_keep(archive: tp.Union[str, Path]) -> Path:
    """Decompress ``archive`` next to itself, leaving the archive in place."""
    archive = Path(archive)
    opener = _OPENERS.get(archive.suffix)
    if opener is None:
        raise BenchmarkError(f"Unsupported archive format: {archive.name}")
    target = archive.with_suffix("")
    with opener(archive, "rb") as fin, target.open("wb") as fout:
        shutil.copyfileobj(fin, fout)
    return target


def write_window_file(path: tp.Union[str, Path], width: int) -> Path:
    """Write a coring window definition applying ``width`` to every state."""
    if width < 1:
        raise BenchmarkError(f"Coring window must be positive, got {width}")
    path = Path(path)
    path.write_text(f"* {width}\n")
    return path
