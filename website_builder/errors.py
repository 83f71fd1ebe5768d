"""Error types raised by the build pipeline.

Every failure a stage can report is a BuildError subclass, so the pipeline
driver can catch one type, stamp it with the stage name, and turn it into a
failed BuildResult.

Kinds:
- ConfigurationError: missing/invalid working directory or source directory.
- ParseError: malformed front matter, rule files, or template syntax.
- StructureError: duplicate output paths, unresolved layouts.
- CompileError: Sass compilation failure.
- BuildIOError: read or write failure against the filesystem.
"""

from __future__ import annotations


class BuildError(Exception):
    """Error during a build with file context.

    Attributes:
        message: Human-readable error message.
        path: Path (relative or absolute) of the file that caused the error.
        stage: Name of the stage that failed, set by the pipeline driver.
    """

    kind = "BuildError"

    def __init__(self, message: str, path: str | None = None, stage: str | None = None):
        self.message = message
        self.path = path
        self.stage = stage
        super().__init__(message)

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class ConfigurationError(BuildError):
    kind = "ConfigurationError"


class ParseError(BuildError):
    kind = "ParseError"


class StructureError(BuildError):
    kind = "StructureError"


class CompileError(BuildError):
    kind = "CompileError"


class BuildIOError(BuildError):
    kind = "IOError"


def format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"
