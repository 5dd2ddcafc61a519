"""Exception hierarchy shared by the benchmark steps."""


class BenchmarkError(Exception):
    """Base error; ``returncode`` is what the run exits with."""

    returncode = 1

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        if returncode is not None:
            self.returncode = returncode


class MissingPrerequisiteError(BenchmarkError):
    pass


class ToolchainError(BenchmarkError):
    pass


class WorkdirConflictError(BenchmarkError):
    pass


class ColumnSelectionError(BenchmarkError):
    pass


class RelabelError(BenchmarkError):
    pass
