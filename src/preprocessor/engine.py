"""PyPP Engine

C-like conditional compilation for Python sources. Directives live in
ordinary Python comments, so annotated files stay importable as-is:

    #define NAME "value"     -- define a macro (never redefined)
    #include "path/to/file"  -- splice file contents in-place
    #if (expression)         -- emit block if the expression is true
    #elif (expression)       -- alternative branch
    #ifdef  NAME             -- emit block if NAME is a macro or constant
    #ifndef NAME             -- emit block if it is not
    #else                    -- flip the current conditional block
    #endif                   -- close a conditional block

Directive comments that are consumed contribute no text; the newline after
them stays, so line numbers outside inlined includes are preserved. Comments
starting with '#' whose name is not a directive are copied like any other
token. Macro names are never substituted into the body text.

A PreProcessor instance is not thread-safe: the macro table, conditional
state and output buffer are plain attributes. Use one instance per thread
or serialize access.
"""

import dataclasses
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from .conditions import create_conditional_state
from .config import PreprocessorConfig
from .constants import host_constants
from .directives import parse_directive, strip_wrapping
from .errors import CircularIncludeError, IncludeNotFoundError, NotFoundError
from .expression import ExpressionError, is_truthy
from .macros import MacroTable
from .output import OutputBuffer
from .tokens import tokenize_source

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Quotes stripped from around a whole #if condition. Wrapping parentheses
# need no stripping: the expression parser reads them as grouping.
_CONDITION_QUOTES = ('"', "'")


class PreProcessor:
    """Directive engine: tokenize, dispatch directives, accumulate output."""

    DIRECTIVES = frozenset({'define', 'include', 'if', 'elif', 'ifdef', 'ifndef', 'else', 'endif'})

    def __init__(self, config: Optional[PreprocessorConfig] = None, **options: Any):
        if config is None:
            config = PreprocessorConfig(**options)
        elif options:
            config = dataclasses.replace(config, **options)
        self.config = config
        self.constants = config.constants if config.constants is not None else host_constants()
        self.macros = MacroTable()
        self.conditions = create_conditional_state(config.conditional_mode)
        self.output = OutputBuffer()
        self._include_stack: List[Path] = []
        self._path: Optional[Path] = None
        self._line = 0

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def process_file(self, path: PathLike) -> str:
        path = Path(path)
        if not path.is_file():
            raise NotFoundError(path)
        logger.debug("processing file %s", path)
        source = read_source(path, self.config.encoding)
        return self._run(source, path.resolve())

    def process_string(self, source: str) -> str:
        return self._run(source, None)

    def _run(self, source: str, path: Optional[Path]) -> str:
        self.output.reset()
        self.conditions.reset()
        if not self.config.keep_macros:
            self.macros.clear()
        self.macros.seed({
            name: value for name, value in self.config.defines.items() if name not in self.macros
        })

        self._include_stack = [path] if path is not None else []
        self._emit(source, path)
        self.conditions.finish(path)
        return self.output.getvalue()

    def _emit(self, source: str, path: Optional[Path]) -> None:
        outer = (self._path, self._line)
        self._path = path
        try:
            for token in tokenize_source(source, path):
                self._line = token.line
                if token.is_directive_candidate and self.handle_directive(token.text):
                    continue
                if self.conditions.suppressed:
                    continue
                self.output.append(token.text)
        finally:
            self._path, self._line = outer

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle_directive(self, comment: str) -> bool:
        """Run the handler for *comment*; True when it was consumed as a directive."""
        directive = parse_directive(comment)
        if directive.name not in self.DIRECTIVES:
            return False
        handler = getattr(self, directive.dispatch_key)
        handled = handler(directive.payload)
        logger.debug("%s:%d: #%s %r -> %s", self._path or '<string>', self._line,
                     directive.name, directive.payload, 'consumed' if handled else 'kept')
        return handled

    def define_directive(self, payload: Optional[str]) -> bool:
        if self.conditions.suppressed:
            return True
        if payload is None:
            return False
        name, _, raw_value = payload.partition(' ')
        self.macros.define(name, strip_wrapping(raw_value), self._path, self._line)
        return True

    def include_directive(self, payload: Optional[str]) -> bool:
        if self.conditions.suppressed:
            return True
        if payload is None:
            return False
        target = self._include_path(strip_wrapping(payload.strip()))
        try:
            text = read_source(target, self.config.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise IncludeNotFoundError(target, self._path, self._line) from e
        logger.debug("including %s (%d chars)", target, len(text))

        if not self.config.recursive_includes:
            self.output.append(text)
            return True

        resolved = target.resolve()
        if resolved in self._include_stack:
            raise CircularIncludeError(self._include_stack + [resolved], self._path, self._line)
        self._include_stack.append(resolved)
        try:
            self._emit(text, resolved)
        finally:
            self._include_stack.pop()
        return True

    def if_directive(self, payload: Optional[str]) -> bool:
        if payload is None:
            return False
        self.conditions.open(self._test(payload))
        return True

    def elif_directive(self, payload: Optional[str]) -> bool:
        if payload is None and self.conditions.suppressed:
            return False
        self.conditions.alternative(lambda: self._test(payload), self._path, self._line)
        return True

    def ifdef_directive(self, payload: Optional[str]) -> bool:
        if payload is None:
            return False
        self.conditions.open(self.is_defined(payload.strip()))
        return True

    def ifndef_directive(self, payload: Optional[str]) -> bool:
        if payload is None:
            return False
        self.conditions.open(not self.is_defined(payload.strip()))
        return True

    def else_directive(self, payload: Optional[str]) -> bool:
        self.conditions.otherwise(self._path, self._line)
        return True

    def endif_directive(self, payload: Optional[str]) -> bool:
        self.conditions.close(self._path, self._line)
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def is_defined(self, name: str) -> bool:
        return name in self.macros or self.constants.is_defined(name)

    def lookup(self, name: str) -> Any:
        """Value of *name* for #if expressions; KeyError when undefined."""
        if name in self.macros:
            return self.macros[name].literal()
        if self.constants.is_defined(name):
            return self.constants.value(name)
        raise KeyError(name)

    def _test(self, payload: str) -> bool:
        expression = payload.strip()
        if (
            len(expression) >= 2
            and expression[0] in _CONDITION_QUOTES
            and expression[-1] == expression[0]
            and expression[0] not in expression[1:-1]
        ):
            expression = strip_wrapping(expression)
        try:
            return is_truthy(expression, self.lookup)
        except ExpressionError as e:
            # Unevaluable conditions suppress their block
            logger.debug("%s:%d: condition %r treated as false: %s",
                         self._path or '<string>', self._line, expression, e)
            return False

    def _include_path(self, name: str) -> Path:
        target = Path(name)
        if target.is_absolute():
            return target
        if self._path is not None:
            return self._path.parent / target
        return (self.config.base_dir or Path.cwd()) / target


def read_source(path: PathLike, encoding: str) -> str:
    """Read *path* with line endings left as they are on disk."""
    with open(path, encoding=encoding, newline='') as f:
        return f.read()


def preprocess(source: str, **options: Any) -> str:
    """Preprocess *source* with a fresh engine built from *options*."""
    return PreProcessor(**options).process_string(source)


def preprocess_file(path: PathLike, **options: Any) -> str:
    return PreProcessor(**options).process_file(path)
