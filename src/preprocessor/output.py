"""PyPP Output Accumulator"""

from typing import List


class OutputBuffer:
    """Growing result text of a pass."""

    def __init__(self):
        self._chunks: List[str] = []

    def append(self, text: str) -> None:
        if text:
            self._chunks.append(text)

    def reset(self) -> None:
        self._chunks.clear()

    def getvalue(self) -> str:
        return ''.join(self._chunks)
