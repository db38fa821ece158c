"""Exception hierarchy for the simulation kernel."""


class SimulationError(Exception):
    """Base class for all simulation errors."""


class UsageError(SimulationError):
    """Programming mistake detected synchronously at the call site."""


class CapacityExceeded(UsageError):
    """Requested amount can never fit into the resource."""

    def __init__(self, amount, capacity):
        super().__init__(
            f"Requested amount {amount} exceeds capacity {capacity}"
        )
        self.amount = amount
        self.capacity = capacity


class OverRelease(UsageError):
    """Released more than is currently held."""

    def __init__(self, amount, in_use):
        super().__init__(
            f"Cannot release {amount}, only {in_use} in use"
        )
        self.amount = amount
        self.in_use = in_use


class EmptySchedule(UsageError):
    """No events left to process."""


class KernelInvariantViolation(SimulationError):
    """Internal consistency check failed. Always fatal."""


class Cancelled(SimulationError):
    """Signal thrown into a process that has been cancelled.

    A process may catch it to clean up. Letting it escape terminates the
    process in the CANCELLED state.

    Attributes:
        cause: Optional object describing why the process was cancelled
    """

    def __init__(self, cause=None):
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return f"Cancelled(cause={self.cause!r})"


class ProcessFailure(SimulationError):
    """Uncaught exception raised inside a process body.

    Attributes:
        process: The failed process
        cause: The original exception
    """

    def __init__(self, process, cause: BaseException):
        super().__init__(f"{process} failed: {cause!r}")
        self.process = process
        self.cause = cause


class UnobservedFailures(SimulationError):
    """Failures nobody waited on, reported at the end of a run."""

    def __init__(self, failures):
        lines = ", ".join(repr(f.exception) for f in failures)
        super().__init__(f"{len(failures)} unobserved failure(s): {lines}")
        self.failures = list(failures)
