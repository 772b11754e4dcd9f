"""
Typed Exception Hierarchy for the batch engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A batch run surfaces its failures through the terminal status of the run
and through structured log lines.  Both are consumed by machines, so the
error has to be identified without parsing its message:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, log-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        launcher.launch(definition, parameters)
    except Exception as e:
        if "already completed" in str(e):  # FRAGILE
            pick_new_parameters()

Example - RIGHT way (what this module enables):
    try:
        launcher.launch(definition, parameters)
    except DuplicateRunError as e:
        log.warning("instance %s already complete", e.instance_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BatchKernelError (base)
    |
    +-- BatchError
    |   +-- ResourceUnavailableError
    |   +-- ValidationError
    |   +-- ItemWriteError
    |   +-- DuplicateRunError
    |   +-- JobRunAlreadyRunningError
    |   +-- JobRunNotFoundError
    |
    +-- ScheduleError
    |   +-- InvalidScheduleError
    |
    +-- ConfigurationError

===============================================================================
RECOVERY
===============================================================================

   - ValidationError -> recovered as a Dropped item in filter mode
   - ResourceUnavailableError / ItemWriteError -> step FAILED, run FAILED
   - DuplicateRunError / JobRunAlreadyRunningError -> run never starts
   - InvalidScheduleError -> raised when the scheduler is built

===============================================================================
"""


class BatchKernelError(Exception):
    """
    Base exception for all batch engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BATCH_KERNEL_ERROR"


# Batch execution exceptions


class BatchError(BatchKernelError):
    """Base exception for job and step execution errors."""

    code: str = "BATCH_ERROR"


class ResourceUnavailableError(BatchError):
    """A source or sink could not open its backing resource."""

    code: str = "RESOURCE_UNAVAILABLE"

    def __init__(self, resource: str, reason: str):
        self.resource = resource
        self.reason = reason
        super().__init__(f"Resource {resource} is unavailable: {reason}")


class ValidationError(BatchError):
    """An item failed validation inside the transform chain."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ItemWriteError(BatchError):
    """A chunk could not be written to its sink."""

    code: str = "ITEM_WRITE_FAILED"

    def __init__(self, step_name: str, chunk_size: int, attempts: int, reason: str):
        self.step_name = step_name
        self.chunk_size = chunk_size
        self.attempts = attempts
        self.reason = reason
        super().__init__(
            f"Step {step_name} failed to write a chunk of {chunk_size} item(s) "
            f"after {attempts} attempt(s): {reason}"
        )


class DuplicateRunError(BatchError):
    """
    A job instance with identical parameters has already completed.

    Re-running a finished job requires at least one different parameter.
    """

    code: str = "DUPLICATE_RUN"

    def __init__(self, job_name: str, instance_id: int, parameters: str):
        self.job_name = job_name
        self.instance_id = instance_id
        self.parameters = parameters
        super().__init__(
            f"Job {job_name} instance {instance_id} already completed "
            f"with parameters {parameters}"
        )


class JobRunAlreadyRunningError(BatchError):
    """A run of the same job instance is still in progress."""

    code: str = "JOB_RUN_ALREADY_RUNNING"

    def __init__(self, job_name: str, running_run_id: str):
        self.job_name = job_name
        self.running_run_id = running_run_id
        super().__init__(
            f"Job {job_name} is already running (run {running_run_id})"
        )


class JobRunNotFoundError(BatchError):
    """No run exists with the given identifier."""

    code: str = "JOB_RUN_NOT_FOUND"

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Job run not found: {run_id}")


# Scheduling exceptions


class ScheduleError(BatchKernelError):
    """Base exception for scheduler errors."""

    code: str = "SCHEDULE_ERROR"


class InvalidScheduleError(ScheduleError):
    """A schedule period or policy is not usable."""

    code: str = "INVALID_SCHEDULE"

    def __init__(self, period_seconds: float, reason: str):
        self.period_seconds = period_seconds
        self.reason = reason
        super().__init__(f"Invalid schedule period {period_seconds}: {reason}")


# Configuration exceptions


class ConfigurationError(BatchKernelError):
    """A configuration value is missing or out of range."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid configuration for {field_name}: {reason}")
