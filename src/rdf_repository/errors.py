"""
Exception types raised by the repository core.
"""


class RepositoryError(Exception):
    """Base class for repository errors."""
    pass


class MalformedStatementError(RepositoryError):
    """A statement is missing a component or has an ill-typed one."""
    pass


class InvalidPatternError(RepositoryError):
    """A query pattern has a concrete component of a disallowed kind."""
    pass


class ConfigurationError(RepositoryError):
    """Invalid repository or backend configuration."""
    pass


class NQuadsParseError(RepositoryError, ValueError):
    """Error raised while reading N-Quads input."""

    def __init__(self, message: str, line_number: int = 0, line: str = ""):
        self.line_number = line_number
        self.line = line
        if line_number:
            message = f"Error parsing line {line_number}: {message}\nLine: {line}"
        super().__init__(message)
