"""
dibuild exception hierarchy

Every error raised by the build pipeline derives from BuildException.
Errors raised by the embedded container framework derive from
dibuild.container.exceptions.ContainerException and are wrapped into
CompileError by the builder.
"""

import json
import traceback
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, Type


class ErrorCategory(Enum):
    """Pipeline step an error belongs to"""
    OPTIONS = "OPTIONS"
    FINDER = "FINDER"
    READER = "READER"
    COMPILER = "COMPILER"
    WRITER = "WRITER"
    INPUT = "INPUT"
    UNKNOWN = "UNKNOWN"


class BuildException(Exception):
    """
    Base exception for the build pipeline.

    Attributes:
        error_code: Error identifier (e.g. "READER_READ_ERROR")
        context: Diagnostic context (step, scanned directories, files...)
        category: Error category
        timestamp: When the error was raised
        original_error: Wrapped exception, if any
    """

    category = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now()
        self.original_error = original_error
        self._traceback = traceback.format_exc() if original_error else None

    def _generate_error_code(self) -> str:
        return f"{self.category.value}_{self.__class__.__name__.upper()}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logging."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_error) if self.original_error else None,
            "traceback": self._traceback,
        }

    def with_context(self, **kwargs) -> "BuildException":
        """Attach extra context; existing keys are kept."""
        for key, value in kwargs.items():
            self.context.setdefault(key, value)
        return self

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r})"
        )


class ValidationError(BuildException):
    """An option value is invalid"""

    category = ErrorCategory.OPTIONS

    def __init__(self, message: str, option: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.option = option
        if option:
            self.context["option"] = option


class FinderError(BuildException):
    """A file or directory named explicitly could not be found"""

    category = ErrorCategory.FINDER

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path
        if path:
            self.context["path"] = path


class ReadError(BuildException):
    """A service or compiler pass file could not be read"""

    category = ErrorCategory.READER

    def __init__(self, message: str, file: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.file = file
        if file:
            self.context["file"] = file


class CompileError(BuildException):
    """The container framework failed to compile or dump"""

    category = ErrorCategory.COMPILER


class WriteError(BuildException):
    """The compiled container could not be written"""

    category = ErrorCategory.WRITER

    def __init__(self, message: str, filename: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.filename = filename
        if filename:
            self.context["filename"] = filename


class JSONDecodeError(BuildException):
    """Malformed JSON was given as input (e.g. --dump-options)"""

    category = ErrorCategory.INPUT

    @classmethod
    def from_decode_error(cls, error: json.JSONDecodeError, source: str) -> "JSONDecodeError":
        return cls(
            f"Invalid json format in {source}: {error.msg} "
            f"(line {error.lineno}, column {error.colno})",
            context={"source": source},
            original_error=error,
        )


def wrap_exception(
    original: Exception,
    exception_class: Type[BuildException] = BuildException,
    message: Optional[str] = None,
    **kwargs
) -> BuildException:
    """
    Wrap a foreign exception into a BuildException subclass.

    Args:
        original: The exception to wrap
        exception_class: BuildException subclass to instantiate
        message: Message override (defaults to str(original))
        **kwargs: Extra constructor arguments

    Returns:
        BuildException: The wrapped exception
    """
    msg = message or str(original)
    return exception_class(msg, original_error=original, **kwargs)


def get_error_code(error: Exception) -> Optional[str]:
    if isinstance(error, BuildException):
        return error.error_code
    return None


def get_error_context(error: Exception) -> Dict[str, Any]:
    if isinstance(error, BuildException):
        return error.context
    return {}
