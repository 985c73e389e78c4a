"""
Exception taxonomy for the scanner
"""

from typing import Optional


class ScannerError(Exception):
    """Base class for all scanner errors"""


class QueryError(ScannerError):
    """Inventory query failed after retries were exhausted"""

    def __init__(self, message: str, cause: Optional[BaseException] = None,
                 scope: Optional[str] = None, attempts: int = 0):
        super().__init__(message)
        self.cause = cause
        self.scope = scope
        self.attempts = attempts


class CheckTimeoutError(ScannerError):
    """Check logic did not finish within its time budget"""

    def __init__(self, check_id: str, timeout: float):
        super().__init__(f"Check execution timed out after {timeout} seconds")
        self.check_id = check_id
        self.timeout = timeout


class CheckExecutionError(ScannerError):
    """Check logic raised or returned something other than a result"""

    def __init__(self, check_id: str, cause: BaseException):
        super().__init__(f"Check execution failed: {cause}")
        self.check_id = check_id
        self.cause = cause


class InvalidCheckError(ScannerError, ValueError):
    """Check definition is malformed"""


class RegistrationConflictError(ScannerError):
    """A check with the same id is already registered"""

    def __init__(self, check_id: str):
        super().__init__(f"Check {check_id} is already registered; keeping the original")
        self.check_id = check_id


class ScopeError(ScannerError):
    """A scope could not be prepared for scanning"""

    def __init__(self, scope: str, message: str):
        super().__init__(f"Scope {scope}: {message}")
        self.scope = scope


class BaselineError(ScannerError):
    """Baseline file exists but could not be read or parsed"""

    def __init__(self, path: str, message: str):
        super().__init__(f"Baseline {path}: {message}")
        self.path = path
