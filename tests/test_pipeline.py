import logging
import sys

import pytest

from clusterbench.config import RunConfig
from clusterbench.errors import WorkdirConflictError
from clusterbench.pipeline import run_benchmark
from clusterbench.runner import Phase, Stage, command_step, python_step
from clusterbench.stages import rename_states

PHASES = [phase for phase in Phase if phase is not Phase.DONE]


def marker_step(markers, index, code):
    """A real subprocess that leaves a marker file and exits with ``code``."""
    marker = markers / f"step{index}"
    script = f"import pathlib, sys; pathlib.Path({str(marker)!r}).touch(); sys.exit({code})"
    return command_step(f"step {index}", [sys.executable, "-c", script])


def stub_stages(markers, fail_at=None, code=0):
    return [
        Stage(phase, (marker_step(markers, i, code if i == fail_at else 0),))
        for i, phase in enumerate(PHASES)
    ]


@pytest.fixture
def markers(tmp_path):
    path = tmp_path / "markers"
    path.mkdir()
    return path


@pytest.mark.parametrize("fail_at", range(len(PHASES)))
def test_failure_aborts_and_cleans_up(tmp_path, markers, fail_at):
    config = RunConfig(workdir=tmp_path / "bench", assume_yes=True)
    code = 10 + fail_at
    status = run_benchmark(config, stub_stages(markers, fail_at, code))
    assert status.returncode == code
    assert status.phase is PHASES[fail_at]
    assert sorted(p.name for p in markers.iterdir()) == [f"step{i}" for i in range(fail_at + 1)]
    assert not config.workdir.exists()


def test_all_stubs_succeed(tmp_path, markers):
    config = RunConfig(workdir=tmp_path / "bench", assume_yes=True)
    status = run_benchmark(config, stub_stages(markers))
    assert status.ok
    assert status.phase is Phase.DONE
    assert len(list(markers.iterdir())) == len(PHASES)
    assert config.workdir.is_dir()


def test_successful_run_leaves_relabeled_microstates(tmp_path, pythonpath):
    config = RunConfig(workdir=tmp_path / "bench", assume_yes=True, python=sys.executable)

    def fake_clustering():
        config.clustering_dir.mkdir()
        config.final_states.write_text("3\n3\n1\n2\n2\n2\n")

    stages = [Stage(phase, (python_step(phase.value, lambda: None),))
              for phase in PHASES[:-2]]
    stages.append(Stage(Phase.RUN_CLUSTERING, (python_step("clustering", fake_clustering),)))
    stages.append(rename_states(config))

    status = run_benchmark(config, stages)
    assert status.returncode == 0
    assert config.final_output == tmp_path / "bench" / "clustering" / "microstates"
    assert config.sorted_states == tmp_path / "bench" / "clustering" / "microstatesFinalSorted"
    assert config.final_output.read_text().split() == ["2", "2", "3", "1", "1", "1"]


def test_rerun_after_failure_starts_clean(tmp_path, markers):
    config = RunConfig(workdir=tmp_path / "bench", assume_yes=True)
    assert run_benchmark(config, stub_stages(markers, fail_at=3, code=2)).returncode == 2
    assert not config.workdir.exists()
    assert run_benchmark(config, stub_stages(markers)).ok


def test_existing_workdir_refused_when_declined(tmp_path, markers):
    config = RunConfig(workdir=tmp_path / "bench")
    config.workdir.mkdir()
    (config.workdir / "old").write_text("previous run")
    with pytest.raises(WorkdirConflictError):
        run_benchmark(config, stub_stages(markers), confirm=lambda _path: False)
    assert (config.workdir / "old").exists()
    assert list(markers.iterdir()) == []


def test_failed_run_kept_when_removal_declined(tmp_path, markers):
    config = RunConfig(workdir=tmp_path / "bench")
    status = run_benchmark(config, stub_stages(markers, fail_at=0, code=1),
                           confirm=lambda _path: False)
    assert status.returncode == 1
    assert config.workdir.is_dir()


def test_success_reports_final_output_path(tmp_path, pythonpath, pipeline_log):
    config = RunConfig(workdir=tmp_path / "bench", assume_yes=True, python=sys.executable)

    def fake_clustering():
        config.clustering_dir.mkdir()
        config.final_states.write_text("1\n1\n2\n")

    stages = [Stage(Phase.RUN_CLUSTERING, (python_step("clustering", fake_clustering),)),
              rename_states(config)]
    assert run_benchmark(config, stages).ok

    messages = [r.getMessage() for r in pipeline_log if r.levelno == logging.INFO]
    expected = tmp_path / "bench" / "clustering" / "microstates"
    assert messages[-1] == f"Microstate trajectory written to: {expected}"
    assert expected.is_file()


def test_failure_reports_warning(tmp_path, markers, pipeline_log):
    config = RunConfig(workdir=tmp_path / "bench", assume_yes=True)
    run_benchmark(config, stub_stages(markers, fail_at=5, code=9))
    warnings = [r.getMessage() for r in pipeline_log if r.levelno == logging.WARNING]
    assert warnings == ["Benchmark aborted during RUN_PCA; exit status 9."]
    assert not any("Microstate trajectory written" in r.getMessage() for r in pipeline_log)
