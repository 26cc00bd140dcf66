"""PyPP Directive Parser

Turns the text of a directive-candidate comment into a ``Directive``:

    #define NAME "value"    ->  Directive('define', 'NAME "value"')
    #else                   ->  Directive('else', None)
    #IfDef  FLAG            ->  Directive('ifdef', ' FLAG')

The payload is passed on unmodified (quotes and all); each handler strips
what it needs.
"""

from dataclasses import dataclass
from typing import Optional

DISPATCH_SUFFIX = '_directive'


@dataclass(frozen=True)
class Directive:
    name: str
    payload: Optional[str] = None

    @property
    def dispatch_key(self) -> str:
        return self.name + DISPATCH_SUFFIX


def parse_directive(comment: str) -> Directive:
    """Split a comment like ``#define X "1"`` into name and payload."""
    candidate = comment.strip()[1:]
    parts = candidate.split(' ', 1)
    payload = parts[1] if len(parts) > 1 else None
    return Directive(parts[0].lower(), payload)


def strip_wrapping(text: str) -> str:
    """Drop exactly one leading and one trailing character (the quotes)."""
    return text[1:-1]
