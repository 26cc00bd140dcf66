"""PyPP Conditional State

Two interchangeable models of "is output currently suppressed":

  FlatConditionalState    -- a single flag for the whole pass. Nested blocks
                             are not tracked: an inner #endif clears the
                             suppression of the outer block, and #elif after
                             a closed branch is evaluated again as a fresh #if.
  ScopedConditionalState  -- a stack of frames, one per open #if/#ifdef/
                             #ifndef block; the first true branch of each
                             block wins and #endif closes one level.

Both expose the same operations, which the directive handlers call:

    open(active)          #if / #ifdef / #ifndef
    alternative(test)     #elif   (test is only called when it matters)
    otherwise()           #else
    close()               #endif
    finish()              end of the pass
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .errors import UnbalancedConditionalError

FLAT = 'flat'
SCOPED = 'scoped'
MODES = (FLAT, SCOPED)


class FlatConditionalState:

    def __init__(self):
        self.suppressed = False

    def reset(self) -> None:
        self.suppressed = False

    def open(self, active: bool) -> None:
        self.suppressed = not active

    def alternative(self, test: Callable[[], bool], path: Optional[Path] = None, line: int = 0) -> None:
        if not self.suppressed:
            # Coming from the taken branch: close it
            self.suppressed = True
            return
        self.open(test())

    def otherwise(self, path: Optional[Path] = None, line: int = 0) -> None:
        self.suppressed = not self.suppressed

    def close(self, path: Optional[Path] = None, line: int = 0) -> None:
        self.suppressed = False

    def finish(self, path: Optional[Path] = None) -> None:
        pass


@dataclass
class _Frame:
    parent_active: bool
    taken: bool
    active: bool


class ScopedConditionalState:

    def __init__(self):
        self.stack: List[_Frame] = []

    @property
    def suppressed(self) -> bool:
        return bool(self.stack) and not self.stack[-1].active

    def reset(self) -> None:
        self.stack.clear()

    def open(self, active: bool) -> None:
        parent_active = not self.suppressed
        active = parent_active and active
        self.stack.append(_Frame(parent_active, taken=active, active=active))

    def alternative(self, test: Callable[[], bool], path: Optional[Path] = None, line: int = 0) -> None:
        frame = self._innermost('#elif', path, line)
        if frame.taken or not frame.parent_active:
            frame.active = False
            return
        frame.active = test()
        frame.taken = frame.active

    def otherwise(self, path: Optional[Path] = None, line: int = 0) -> None:
        frame = self._innermost('#else', path, line)
        frame.active = frame.parent_active and not frame.taken
        frame.taken = True

    def close(self, path: Optional[Path] = None, line: int = 0) -> None:
        self._innermost('#endif', path, line)
        self.stack.pop()

    def finish(self, path: Optional[Path] = None) -> None:
        if self.stack:
            raise UnbalancedConditionalError(
                f"{len(self.stack)} unterminated conditional block(s) at end of input", path
            )

    def _innermost(self, directive: str, path: Optional[Path], line: int) -> _Frame:
        if not self.stack:
            raise UnbalancedConditionalError(
                f"'{directive}' without matching '#if'/'#ifdef'/'#ifndef'", path, line
            )
        return self.stack[-1]


def create_conditional_state(mode: str):
    """Return a fresh conditional state for *mode* ('flat' or 'scoped')."""
    if mode == FLAT:
        return FlatConditionalState()
    if mode == SCOPED:
        return ScopedConditionalState()
    raise ValueError(f"unknown conditional mode: {mode!r} (expected one of {', '.join(MODES)})")
