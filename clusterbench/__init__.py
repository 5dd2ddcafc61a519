from .config import RunConfig
from .io_utils import decompress_keep, select_columns, write_window_file
from .pipeline import run_benchmark
from .runner import Phase, RunStatus, Stage, Step, command_step, python_step, run_stages
from .stages import build_stages

__all__ = [
    "RunConfig",
    "run_benchmark",
    "build_stages",
    "run_stages",
    "command_step",
    "python_step",
    "Phase",
    "RunStatus",
    "Stage",
    "Step",
    "select_columns",
    "decompress_keep",
    "write_window_file",
]

__version__ = "0.1.0"
