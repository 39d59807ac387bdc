"""Custom exceptions for svcprobe."""


class SvcProbeError(Exception):
    """Base exception for svcprobe errors."""
    pass


class CaseDefinitionError(SvcProbeError, ValueError):
    """Raised when a test case is built in a way the harness cannot run."""
    def __init__(self, case: str, message: str):
        super().__init__(f"{case}: {message}")
        self.case = case
        self.message = message


class DiffOptionError(SvcProbeError, ValueError):
    """Raised when a diff option is invalid."""
    def __init__(self, option: str, message: str):
        super().__init__(f"Invalid diff option '{option}': {message}")
        self.option = option
        self.message = message


class ConfigDecodeError(SvcProbeError):
    """Raised when a configuration cannot be decoded onto its destination."""
    def __init__(self, errors: list[str]):
        count = len(errors)
        lines = "\n".join(f"* {e}" for e in errors)
        super().__init__(f"{count} error(s) decoding:\n\n{lines}")
        self.errors = errors


class ConfigurationError(SvcProbeError, ValueError):
    """Raised when the harness settings read from the environment are invalid."""
    def __init__(self, variable: str, value: str, reason: str):
        super().__init__(f"Invalid value for {variable}={value!r}: {reason}")
        self.variable = variable
        self.value = value
        self.reason = reason
