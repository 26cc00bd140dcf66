"""PyPP Token Classifier

Wraps Python's own ``tokenize`` module. Every lexical token is reported with
its exact source slice, and the text between tokens (indentation before a
comment, spaces, backslash continuations) is reported as synthetic
``WHITESPACE`` tokens, so joining the ``text`` of all tokens reproduces the
source byte for byte.
"""

import io
import logging
import tokenize
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

WHITESPACE = "WHITESPACE"
# Tail of a source the tokenizer gave up on
UNTOKENIZED = "UNTOKENIZED"
COMMENT = tokenize.tok_name[tokenize.COMMENT]


@dataclass(frozen=True)
class SourceToken:
    kind: str
    text: str
    line: int

    @property
    def is_directive_candidate(self) -> bool:
        """True for comment tokens whose text starts with ``#``."""
        return self.kind == COMMENT and self.text.strip().startswith('#')

    def __str__(self) -> str:
        return f"SourceToken({self.kind}, {self.text!r}, line {self.line})"


def _line_offsets(source: str) -> List[int]:
    # StringIO splits on '\n' only, matching the readline handed to tokenize
    offsets = [0]
    for line in io.StringIO(source):
        offsets.append(offsets[-1] + len(line))
    return offsets


def tokenize_source(source: str, path: Optional[Path] = None) -> Iterator[SourceToken]:
    """Yield the tokens of *source*, gaps included.

    Text the tokenizer rejects (an unterminated triple-quoted string, prose
    with a stray quote) ends the token stream with one ``UNTOKENIZED`` token
    holding the rest of the source.
    """
    offsets = _line_offsets(source)
    end = len(source)

    def offset(position: Tuple[int, int]) -> int:
        row, col = position
        return min(offsets[min(row - 1, len(offsets) - 1)] + col, end)

    cursor = 0
    kind = WHITESPACE
    try:
        for tok in tokenize.generate_tokens(io.StringIO(source).readline):
            start, stop = offset(tok.start), offset(tok.end)
            if start > cursor:
                yield SourceToken(WHITESPACE, source[cursor:start], tok.start[0])
                cursor = start
            if stop > cursor:
                yield SourceToken(tokenize.tok_name[tok.type], source[cursor:stop], tok.start[0])
                cursor = stop
    except (tokenize.TokenError, SyntaxError) as e:
        # Directives in the rest of the text are not recognized
        kind = UNTOKENIZED
        logger.warning("%s:%d: cannot tokenize source (%s), passing the rest through",
                       path or '<string>', source.count('\n', 0, cursor) + 1,
                       e.args[0] if e.args else e)

    if cursor < end:
        yield SourceToken(kind, source[cursor:], source.count('\n', 0, cursor) + 1)
