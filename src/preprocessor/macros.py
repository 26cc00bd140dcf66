"""PyPP Macro Table

Macros are created by ``#define`` (or seeded from configured predefines) and
are never updated or removed during a pass.
"""

import ast
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import NoRedefineError


@dataclass(frozen=True)
class Macro:
    name: str
    value: str
    # Where the definition came from; None for predefined macros
    path: Optional[Path] = None
    line: int = 0

    def literal(self) -> Any:
        """The value read as a Python literal, or the raw string."""
        try:
            return ast.literal_eval(self.value)
        except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError):
            return self.value


class MacroTable(Dict[str, Macro]):
    """Mapping of macro name to its definition."""

    def define(self, name: str, value: str, path: Optional[Path] = None, line: int = 0) -> Macro:
        if name in self:
            raise NoRedefineError(name, path, line)
        macro = Macro(name, value, path, line)
        self[name] = macro
        return macro

    def seed(self, definitions: Mapping[str, str]) -> None:
        for name, value in definitions.items():
            self.define(name, value)
