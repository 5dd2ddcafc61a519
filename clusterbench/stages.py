"""
Stage builders for the HP35 benchmark.

Each builder turns a :class:`RunConfig` into the ordered steps of one phase.
Building the stages has no side effects; probing the host compilers and all
file system work happens when the steps run.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from .config import RunConfig
from .io_utils import decompress_keep, select_columns, write_window_file
from .logging_utils import get_logger
from .runner import Phase, Stage, Step, command_step, python_step
from .toolchain import (
    REQUIRED_TOOLS,
    compiler_overrides,
    cuda_version,
    host_compiler_version,
    require_tool,
    select_compiler,
)


def check_requirements(config: RunConfig) -> Stage:
    tools = list(REQUIRED_TOOLS) + [config.python]
    steps = [python_step(f"Checking for {tool}", lambda tool=tool: require_tool(tool))
             for tool in tools]
    return Stage(Phase.CHECK_REQS, tuple(steps))


def _activate(config: RunConfig) -> None:
    if not config.venv_python.exists():
        raise FileNotFoundError(f"No interpreter in virtual environment: {config.venv_python}")
    get_logger("clusterbench.stages").debug("Activated %s", config.venv_dir)


def setup_environment(config: RunConfig) -> Stage:
    env = config.activated_env()
    pip = [str(config.venv_python), "-m", "pip", "install"]
    if config.quiet:
        pip.append("--quiet")
    steps = [
        command_step("Creating virtual environment",
                     [config.python, "-m", "venv", config.venv_dir],
                     cwd=config.workdir, quiet=config.quiet),
        python_step("Activating virtual environment", lambda: _activate(config)),
        command_step("Upgrading pip", pip + ["--upgrade", "pip"],
                     env=env, quiet=config.quiet),
        command_step("Installing dependencies", pip + list(config.venv_packages),
                     env=env, quiet=config.quiet),
    ]
    return Stage(Phase.SETUP_ENV, tuple(steps))


def host_compiler_flags() -> list[str]:
    """Probe nvcc and g++ and return the CMake compiler overrides."""
    cuda = cuda_version()
    host = host_compiler_version()
    choice = select_compiler(cuda)
    get_logger("clusterbench.stages").info(
        "CUDA %s, host g++ %s -> using %s",
        ".".join(map(str, cuda)), ".".join(map(str, host)), choice.cxx)
    return compiler_overrides(choice, host)


def _configure_action(config: RunConfig, src: Path, build: Path,
                      flags: tuple[str, ...]) -> Step:
    """cmake configure step; the compiler is chosen when the step runs."""

    def action() -> int:
        overrides: list[str] = []
        status = python_step("Selecting host compiler",
                             lambda: overrides.extend(host_compiler_flags()))()
        if status != 0:
            return status
        argv = ["cmake", "-S", src, "-B", build, *overrides, *flags]
        return command_step("Configuring", argv, env=config.activated_env(),
                            quiet=config.quiet)()

    return Step(f"Configuring {src.name}", action)


def build_tool(config: RunConfig, phase: Phase, url: str, branch: str,
               src: Path, build: Path, flags: tuple[str, ...]) -> Stage:
    env = config.activated_env()
    steps = [
        command_step(f"Cloning {src.name}",
                     ["git", "clone", "--branch", branch, url, src],
                     cwd=config.workdir, env=env, quiet=config.quiet),
        _configure_action(config, src, build, flags),
        command_step(f"Compiling {src.name}",
                     ["cmake", "--build", build, "--parallel"],
                     env=env, quiet=config.quiet),
    ]
    return Stage(phase, tuple(steps))


def fetch_dataset(config: RunConfig) -> Stage:
    archive = config.dataset_dir / config.dataset_archive
    steps = [
        command_step("Cloning HP35 dataset",
                     ["git", "clone", "--depth", "1", config.dataset_url, config.dataset_dir],
                     cwd=config.workdir, quiet=config.quiet),
        python_step(f"Decompressing {archive.name}", lambda: decompress_keep(archive)),
    ]
    return Stage(Phase.FETCH_DATA, tuple(steps))


def _tool_flags(config: RunConfig) -> list[str]:
    return ["-v"] if config.verbosity >= 2 else []


def run_pca(config: RunConfig) -> Stage:
    dpca = config.dpca_dir
    stem = config.dihedrals.name
    argv = [
        config.fastpca_exe,
        "-f", config.dihedrals,
        "-p", config.projection,
        "-c", dpca / f"{stem}.cov",
        "-v", dpca / f"{stem}.vec",
        "-s", dpca / f"{stem}.stats",
        "--periodic",
    ]
    steps = [
        python_step("Creating dpca directory", lambda: dpca.mkdir(parents=True, exist_ok=True)),
        command_step("Dihedral PCA", argv, cwd=dpca, env=config.activated_env(),
                     quiet=config.quiet),
    ]
    return Stage(Phase.RUN_PCA, tuple(steps))


def run_clustering(config: RunConfig) -> Stage:
    cdir = config.clustering_dir
    env = config.activated_env()
    coords = cdir / "coords"
    window = cdir / "win"
    radius = str(config.density_radius)
    extra = _tool_flags(config)

    def clustering(label: str, *args: object) -> Step:
        argv = [config.clustering_exe, *args, *extra]
        return command_step(label, argv, cwd=cdir, env=env, quiet=config.quiet)

    steps = [
        python_step("Creating clustering directory", lambda: cdir.mkdir(parents=True, exist_ok=True)),
        python_step(
            "Selecting principal components",
            lambda: select_columns(config.projection, coords, config.pca_columns),
        ),
        clustering("Density estimation", "density", "-f", coords, "-r", radius,
                   "-p", "pop", "-d", "fe", "-b", "nn"),
        clustering("Screening", "density", "-f", coords, "-T", "-1",
                   "-D", "fe", "-B", "nn", "-o", "clust"),
        clustering("Network construction", "network",
                   "-p", config.network_min_population,
                   "--step", config.network_step, "-b", "clust"),
        clustering("Microstates from network end nodes", "density", "-f", coords,
                   "-i", "network_end_node_traj.dat", "-r", radius,
                   "-D", "fe", "-B", "nn", "-o", "microstatesDensity"),
        clustering("Noise removal", "noise", "-s", "microstatesDensity",
                   "-c", config.noise_cmin, "-b", "clust", "-o", "microstatesNoise"),
        python_step("Writing coring window",
                    lambda: write_window_file(window, config.coring_window)),
        clustering("Dynamical coring", "coring", "-s", "microstatesNoise",
                   "-w", window, "-o", config.final_states.name),
    ]
    return Stage(Phase.RUN_CLUSTERING, tuple(steps))


def rename_states(config: RunConfig) -> Stage:
    steps = [
        command_step(
            "Renaming microstates by population",
            [config.python, "-m", "clusterbench.relabel", "-f", config.final_states],
            cwd=config.clustering_dir,
        ),
        python_step(
            f"Copying result to {config.final_output.name}",
            lambda: shutil.copyfile(config.sorted_states, config.final_output),
        ),
    ]
    return Stage(Phase.RENAME, tuple(steps))


def build_stages(config: RunConfig) -> list[Stage]:
    """All phases of the benchmark in run order."""
    return [
        check_requirements(config),
        setup_environment(config),
        build_tool(config, Phase.BUILD_TOOL_A, config.fastpca_url, config.fastpca_branch,
                   config.fastpca_src, config.fastpca_build, config.fastpca_cmake_flags),
        build_tool(config, Phase.BUILD_TOOL_B, config.clustering_url, config.clustering_branch,
                   config.clustering_src, config.clustering_build, config.clustering_cmake_flags),
        fetch_dataset(config),
        run_pca(config),
        run_clustering(config),
        rename_states(config),
    ]
