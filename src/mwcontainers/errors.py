"""Domain errors for mwcontainers."""


class DeployError(RuntimeError):
    """Raised when a deployment action cannot continue."""


class CommandError(DeployError):
    """An external command exited with a non-zero status."""

    def __init__(self, message: str, returncode: int):
        super().__init__(message)
        self.returncode = returncode


class InstallAborted(DeployError):
    """The operator declined the installation prompt."""


class LogWaitError(DeployError):
    """Base class for journal waits that did not see their sentinel."""


class SentinelTimeout(LogWaitError):
    pass


class LogStreamClosed(LogWaitError):
    pass


class LogWaitCancelled(LogWaitError):
    pass


class SentinelNotFound(LogWaitError):
    """The log history does not end with the expected marker."""

    def __init__(self, message: str, history=None):
        super().__init__(message)
        self.history = list(history or [])
