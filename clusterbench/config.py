"""Run configuration for the HP35 clustering benchmark.

Everything the stages need is carried on a single :class:`RunConfig`; no step
reads module-level state. Only the working directory and the confirmation
policy can be overridden from the environment, since the command line itself
accepts nothing but ``-h`` and ``-v``.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

WORKDIR_ENV = "CLUSTERBENCH_WORKDIR"
ASSUME_YES_ENV = "CLUSTERBENCH_ASSUME_YES"

DEFAULT_WORKDIR_NAME = "hp35_clustering"

FASTPCA_URL = "https://github.com/lettis/FastPCA.git"
CLUSTERING_URL = "https://github.com/lettis/Clustering.git"
DATASET_URL = "https://github.com/moldyn/HP35.git"


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass
class RunConfig:
    workdir: Path = field(default_factory=lambda: Path.cwd() / DEFAULT_WORKDIR_NAME)
    verbosity: int = 0
    assume_yes: bool = False
    python: str = sys.executable

    venv_packages: tuple[str, ...] = ("cmake", "numpy")

    fastpca_url: str = FASTPCA_URL
    fastpca_branch: str = "master"
    fastpca_cmake_flags: tuple[str, ...] = ("-DCMAKE_BUILD_TYPE=Release",)
    clustering_url: str = CLUSTERING_URL
    clustering_branch: str = "master"
    clustering_cmake_flags: tuple[str, ...] = (
        "-DCMAKE_BUILD_TYPE=Release",
        "-DUSE_CUDA=1",
    )

    dataset_url: str = DATASET_URL
    dataset_archive: str = "hp35.dihs.bz2"

    # 1-based columns of the dPCA projection fed to the density estimation
    pca_columns: tuple[int, ...] = (1, 2, 3, 4, 5, 7)
    density_radius: float = 0.2
    network_min_population: int = 151
    network_step: float = 0.1
    noise_cmin: float = 0.1
    coring_window: int = 10

    @classmethod
    def from_env(cls, verbosity: int = 0, **overrides) -> "RunConfig":
        env_workdir = os.environ.get(WORKDIR_ENV)
        if env_workdir and "workdir" not in overrides:
            overrides["workdir"] = Path(env_workdir)
        if "assume_yes" not in overrides:
            overrides["assume_yes"] = _truthy(os.environ.get(ASSUME_YES_ENV))
        return cls(verbosity=verbosity, **overrides)

    def __post_init__(self) -> None:
        self.workdir = Path(self.workdir).expanduser().absolute()

    @property
    def quiet(self) -> bool:
        return self.verbosity < 1

    @property
    def venv_dir(self) -> Path:
        return self.workdir / "venv"

    @property
    def venv_bin(self) -> Path:
        return self.venv_dir / "bin"

    @property
    def venv_python(self) -> Path:
        return self.venv_bin / "python"

    @property
    def fastpca_src(self) -> Path:
        return self.workdir / "FastPCA"

    @property
    def fastpca_build(self) -> Path:
        return self.fastpca_src / "build"

    @property
    def fastpca_exe(self) -> Path:
        return self.fastpca_build / "fastpca"

    @property
    def clustering_src(self) -> Path:
        return self.workdir / "Clustering"

    @property
    def clustering_build(self) -> Path:
        return self.clustering_src / "build"

    @property
    def clustering_exe(self) -> Path:
        return self.clustering_build / "clustering"

    @property
    def dataset_dir(self) -> Path:
        return self.workdir / "HP35"

    @property
    def dihedrals(self) -> Path:
        return self.dataset_dir / Path(self.dataset_archive).stem

    @property
    def dpca_dir(self) -> Path:
        return self.workdir / "dpca"

    @property
    def projection(self) -> Path:
        return self.dpca_dir / f"{self.dihedrals.name}.proj"

    @property
    def clustering_dir(self) -> Path:
        return self.workdir / "clustering"

    @property
    def final_states(self) -> Path:
        return self.clustering_dir / "microstatesFinal"

    @property
    def sorted_states(self) -> Path:
        return self.clustering_dir / "microstatesFinalSorted"

    @property
    def final_output(self) -> Path:
        return self.clustering_dir / "microstates"

    def activated_env(self) -> dict[str, str]:
        """Process environment with the virtual environment activated."""
        env = dict(os.environ)
        env["VIRTUAL_ENV"] = str(self.venv_dir)
        env["PATH"] = os.pathsep.join([str(self.venv_bin), env.get("PATH", "")])
        env.pop("PYTHONHOME", None)
        return env
