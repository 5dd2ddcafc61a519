import bz2
import subprocess
import sys

from clusterbench.errors import BenchmarkError
from clusterbench.io_utils import decompress_keep, select_columns
from clusterbench.runner import (
    COMMAND_NOT_FOUND,
    Phase,
    Stage,
    Step,
    command_step,
    python_step,
    run_stages,
)


def exit_with(code: int) -> list[str]:
    return [sys.executable, "-c", f"import sys; sys.exit({code})"]


def test_command_step_returns_exit_status():
    assert command_step("ok", exit_with(0))() == 0
    assert command_step("fail", exit_with(5))() == 5


def test_command_step_keeps_argv_as_strings(tmp_path):
    step = command_step("ls", ["ls", tmp_path])
    assert step.argv == ("ls", str(tmp_path))


def test_command_step_missing_executable(tmp_path):
    assert command_step("missing", [tmp_path / "no-such-tool"])() == COMMAND_NOT_FOUND


def test_command_step_runs_in_cwd(tmp_path):
    code = "import pathlib; pathlib.Path('here').touch()"
    assert command_step("touch", [sys.executable, "-c", code], cwd=tmp_path, quiet=True)() == 0
    assert (tmp_path / "here").exists()


def test_python_step_maps_errors():
    def benchmark_error():
        raise BenchmarkError("bad input", returncode=4)

    def os_error():
        raise FileNotFoundError("gone")

    assert python_step("ok", lambda: None)() == 0
    assert python_step("benchmark", benchmark_error)() == 4
    assert python_step("os", os_error)() == 1


def test_run_stages_stops_at_first_failure():
    calls = []

    def record(label, code):
        def action():
            calls.append(label)
            return code
        return Step(label, action)

    stages = [
        Stage(Phase.CHECK_REQS, (record("a", 0), record("b", 0))),
        Stage(Phase.SETUP_ENV, (record("c", 3), record("d", 0))),
        Stage(Phase.BUILD_TOOL_A, (record("e", 0),)),
    ]
    status = run_stages(stages)
    assert calls == ["a", "b", "c"]
    assert status.returncode == 3
    assert not status.ok
    assert status.phase is Phase.SETUP_ENV
    assert status.failed_step == "c"
    assert status.completed == ["a", "b"]


def test_run_stages_success_reaches_done():
    stages = [Stage(Phase.CHECK_REQS, (command_step("true", exit_with(0)),))]
    status = run_stages(stages)
    assert status.ok
    assert status.phase is Phase.DONE
    assert status.completed == ["true"]


def test_python_step_maps_signal_death():
    def killed():
        raise subprocess.CalledProcessError(-9, ["nvcc", "--version"])

    assert python_step("probe nvcc", killed)() == 128 + 9


def test_truncated_archive_fails_the_run(tmp_path):
    archive = tmp_path / "hp35.dihs.bz2"
    archive.write_bytes(bz2.compress(b"1.0 2.0 3.0\n" * 1000)[:40])
    after = []
    stages = [
        Stage(Phase.FETCH_DATA, (python_step("Decompressing", lambda: decompress_keep(archive)),)),
        Stage(Phase.RUN_PCA, (Step("pca", lambda: after.append("pca") or 0),)),
    ]
    status = run_stages(stages)
    assert status.returncode == 1
    assert status.phase is Phase.FETCH_DATA
    assert status.failed_step == "Decompressing"
    assert after == []


def test_undecodable_projection_fails_the_step(tmp_path):
    proj = tmp_path / "hp35.dihs.proj"
    proj.write_bytes(b"1 2 3 4 5 6 \xff\n")
    step = python_step(
        "Selecting principal components",
        lambda: select_columns(proj, tmp_path / "coords", (1, 2, 3, 4, 5, 7)),
    )
    assert step() == 1
