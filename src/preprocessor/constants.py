"""PyPP ambient constants

Names that count as "defined" for ``#ifdef``/``#ifndef``/``#if`` without a
``#define`` in the processed text. The engine only talks to the small
``AmbientConstants`` interface, so tests can inject any mapping.
"""

import platform
import sys
from typing import Any, Mapping, Optional


class AmbientConstants:
    """Lookup of constants defined outside the macro table."""

    def is_defined(self, name: str) -> bool:
        raise NotImplementedError

    def value(self, name: str) -> Any:
        """Return the constant's value; KeyError when it is not defined."""
        raise NotImplementedError


class MappingConstants(AmbientConstants):

    def __init__(self, mapping: Optional[Mapping[str, Any]] = None):
        self.mapping = dict(mapping or {})

    def is_defined(self, name: str) -> bool:
        return name in self.mapping

    def value(self, name: str) -> Any:
        return self.mapping[name]

    def __repr__(self) -> str:
        return f"MappingConstants({sorted(self.mapping.items())!r})"


NO_CONSTANTS = MappingConstants()


def host_constants() -> MappingConstants:
    """Constants describing the running interpreter."""
    return MappingConstants({
        'PYTHON_VERSION_HEX': sys.hexversion,
        'PYTHON_MAJOR': sys.version_info.major,
        'PYTHON_MINOR': sys.version_info.minor,
        'PLATFORM': sys.platform,
        'IMPLEMENTATION': platform.python_implementation(),
    })
