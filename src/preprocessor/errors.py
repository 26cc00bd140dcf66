"""PyPP error types

Every fatal condition raised while preprocessing derives from
``PreprocessorError`` and carries an ``ErrorKind`` so callers can react to
the category without matching on message text.
"""

from enum import Enum
from pathlib import Path
from typing import Optional


class ErrorKind(Enum):
    NOT_FOUND = "not-found"
    NO_REDEFINE = "no-redefine"
    INCLUDE_NOT_FOUND = "include-not-found"
    CIRCULAR_INCLUDE = "circular-include"
    UNBALANCED_CONDITIONAL = "unbalanced-conditional"


class PreprocessorError(Exception):
    """Raised for any preprocessor-level error."""

    kind: Optional[ErrorKind] = None

    def __init__(self, message: str, path: Optional[Path] = None, line: int = 0):
        loc = f"{path}:{line}: " if path else (f"line {line}: " if line else "")
        super().__init__(f"Preprocessor error: {loc}{message}")
        self.path = path
        self.line = line


class NotFoundError(PreprocessorError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, target: Path):
        super().__init__(f"'{target}' not found")
        self.target = target


class NoRedefineError(PreprocessorError):
    kind = ErrorKind.NO_REDEFINE

    def __init__(self, name: str, path: Optional[Path] = None, line: int = 0):
        super().__init__(f"'{name}' cannot be redefined", path, line)
        self.name = name


class IncludeNotFoundError(PreprocessorError):
    kind = ErrorKind.INCLUDE_NOT_FOUND

    def __init__(self, target: Path, path: Optional[Path] = None, line: int = 0):
        super().__init__(f"included file not found: {target}", path, line)
        self.target = target


class CircularIncludeError(PreprocessorError):
    kind = ErrorKind.CIRCULAR_INCLUDE

    def __init__(self, chain: list, path: Optional[Path] = None, line: int = 0):
        cycle = ' -> '.join(str(p) for p in chain)
        super().__init__(f"circular #include detected: {cycle}", path, line)
        self.chain = chain


class UnbalancedConditionalError(PreprocessorError):
    kind = ErrorKind.UNBALANCED_CONDITIONAL
