"""
Error taxonomy for the directive engine and the project generator

Every failure inside the engine is a ParseError tagged with one kind from
a fixed vocabulary. Callers decide what is fatal: the generator records a
per-file ParseError and moves on, while validate() errors go straight to
the operator.

Example:
    >>> err = ParseError(ParseErrorKind.MISSING_VARIABLE,
    ...                  "required variable not found: name",
    ...                  directive="@ign-var:name@")
    >>> str(err)
    'required variable not found: name (directive: @ign-var:name@)'
"""

from enum import Enum
from typing import List, Optional


class ParseErrorKind(Enum):
    """Kinds of directive engine failures"""
    UNKNOWN_DIRECTIVE = "unknown directive"
    MISSING_VARIABLE = "missing variable"
    TYPE_MISMATCH = "type mismatch"
    UNCLOSED_BLOCK = "unclosed block"
    CIRCULAR_INCLUDE = "circular include"
    MAX_INCLUDE_DEPTH = "max include depth"
    INCLUDE_NOT_FOUND = "include not found"
    INVALID_DIRECTIVE_SYNTAX = "invalid directive syntax"
    SECURITY_VIOLATION = "security violation"   # filename paths only


class ParseError(Exception):
    """
    Directive engine failure with source context

    Attributes:
        kind: ParseErrorKind tag
        message: Human-readable description
        file: File being processed when the failure occurred ("" if unknown)
        line: 1-based line number (0 if unknown)
        directive: Offending directive text ("" if not applicable)

    The underlying cause, when there is one, is chained with
    ``raise ParseError(...) from exc`` and available as ``__cause__``.
    """

    def __init__(
        self,
        kind: ParseErrorKind,
        message: str,
        file: str = "",
        line: int = 0,
        directive: str = "",
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.file = file
        self.line = line
        self.directive = directive

    def __str__(self) -> str:
        location = ""
        if self.file and self.line > 0:
            location = f"{self.file}:{self.line}: "
        elif self.file:
            location = f"{self.file}: "

        text = f"{location}{self.message}"
        if self.directive:
            text += f" (directive: {self.directive})"
        return text

    @property
    def cause(self) -> Optional[BaseException]:
        """Wrapped underlying error, if any"""
        return self.__cause__


class VariableError(Exception):
    """
    Supplied variable values do not satisfy the template's definitions

    Attributes:
        problems: One message per offending variable
    """

    def __init__(self, message: str, problems: Optional[List[str]] = None) -> None:
        self.problems = problems or []
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


class GeneratorErrorKind(Enum):
    """Kinds of generation (orchestration layer) failures"""
    WRITE_FAILED = "write failed"
    PROCESS_FAILED = "process failed"
    PATH_ERROR = "path error"
    TEMPLATE_INVALID = "template invalid"


class GeneratorError(Exception):
    """
    Failure while loading a template or generating a project

    Attributes:
        kind: GeneratorErrorKind tag
        message: Human-readable description
        file: Template-relative file path involved ("" if none)
    """

    def __init__(self, kind: GeneratorErrorKind, message: str, file: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.file = file

    def __str__(self) -> str:
        text = self.message
        if self.file:
            text += f" (file: {self.file})"
        if self.__cause__ is not None:
            text += f": {self.__cause__}"
        return text
