"""Host toolchain checks and host-compiler selection for the CUDA builds."""

from __future__ import annotations

import re
import shutil
import subprocess
from dataclasses import dataclass

from .errors import MissingPrerequisiteError, ToolchainError
from .logging_utils import get_logger

__all__ = [
    "CompilerChoice",
    "NEWER_COMPILER",
    "OLDER_COMPILER",
    "REQUIRED_TOOLS",
    "compiler_overrides",
    "cuda_version",
    "host_compiler_version",
    "parse_nvcc_version",
    "parse_version",
    "require_tool",
    "select_compiler",
]

REQUIRED_TOOLS = ("g++", "nvcc", "git")

# First CUDA release that accepts gcc 7 as host compiler
CUDA_GCC7_MIN = (9, 2)

_VERSION_RE = re.compile(r"\d+(?:\.\d+)*")
_NVCC_RELEASE_RE = re.compile(r"release\s+(\d+(?:\.\d+)*)")


@dataclass(frozen=True)
class CompilerChoice:
    cc: str
    cxx: str
    major: int


NEWER_COMPILER = CompilerChoice("gcc-7", "g++-7", 7)
OLDER_COMPILER = CompilerChoice("gcc-5", "g++-5", 5)


def require_tool(name: str) -> str:
    """Return the resolved path of ``name`` or raise MissingPrerequisiteError."""
    path = shutil.which(name)
    if path is None:
        raise MissingPrerequisiteError(f"Required command '{name}' was not found on PATH.")
    get_logger("clusterbench.toolchain").debug("Found %s at %s", name, path)
    return path


def parse_version(text: str) -> tuple[int, ...]:
    """Parse the first dotted number in ``text`` into a tuple of ints.

    Tuples compare component by component, so ``(10, 0) > (9, 2)``.
    """
    match = _VERSION_RE.search(text)
    if match is None:
        raise ToolchainError(f"No version number found in {text!r}.")
    return tuple(int(part) for part in match.group(0).split("."))


def parse_nvcc_version(output: str) -> tuple[int, ...]:
    """Extract the release number from ``nvcc --version`` output."""
    match = _NVCC_RELEASE_RE.search(output)
    if match is None:
        raise ToolchainError("Could not find the CUDA release in nvcc output.")
    return parse_version(match.group(1))


def _probe(argv: list[str]) -> str:
    completed = subprocess.run(argv, capture_output=True, text=True, check=True)
    return completed.stdout


def cuda_version(nvcc: str = "nvcc") -> tuple[int, ...]:
    return parse_nvcc_version(_probe([nvcc, "--version"]))


def host_compiler_version(cxx: str = "g++") -> tuple[int, ...]:
    return parse_version(_probe([cxx, "-dumpfullversion", "-dumpversion"]))


def select_compiler(cuda: tuple[int, ...]) -> CompilerChoice:
    if cuda >= CUDA_GCC7_MIN:
        return NEWER_COMPILER
    return OLDER_COMPILER


def compiler_overrides(choice: CompilerChoice, host: tuple[int, ...]) -> list[str]:
    """CMake flags pinning ``choice``, or none if the default compiler matches."""
    if host and host[0] == choice.major:
        return []
    return [
        f"-DCMAKE_C_COMPILER={choice.cc}",
        f"-DCMAKE_CXX_COMPILER={choice.cxx}",
        f"-DCUDA_HOST_COMPILER={choice.cxx}",
    ]
