"""PyPP configuration

Options shared by the engine, the command line and the import hook.
"""

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional

from .conditions import FLAT, MODES, SCOPED
from .constants import AmbientConstants

# Value given to a predefine without '=VALUE' (-DDEBUG)
DEFAULT_DEFINE_VALUE = '1'


@dataclass
class PreprocessorConfig:
    # Macros present at the start of every pass
    defines: Dict[str, str] = field(default_factory=dict)
    # 'scoped' tracks nested blocks, 'flat' keeps a single suppression flag
    conditional_mode: str = SCOPED
    # Preprocess #include targets instead of splicing them verbatim
    recursive_includes: bool = False
    # Keep #define'd macros from one pass to the next on the same engine
    keep_macros: bool = False
    # Where relative #include paths in string input are resolved (cwd if None)
    base_dir: Optional[Path] = None
    encoding: str = 'utf-8'
    # Ambient constants; None means the running interpreter's constants
    constants: Optional[AmbientConstants] = None

    def __post_init__(self):
        if self.conditional_mode not in MODES:
            raise ValueError(
                f"conditional_mode must be one of {', '.join(MODES)}, got {self.conditional_mode!r}"
            )
        if self.base_dir is not None:
            self.base_dir = Path(self.base_dir)

    def parse_defines(self, items: Iterable[str]) -> None:
        """Add predefines given as 'NAME' or 'NAME=VALUE'."""
        for item in items:
            name, sep, value = item.partition('=')
            name = name.strip()
            if not name.isidentifier():
                raise ValueError(f"predefined macro name must be an identifier, got: {name!r}")
            self.defines[name] = value if sep else DEFAULT_DEFINE_VALUE

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'PreprocessorConfig':
        config = cls(
            conditional_mode=FLAT if args.flat_conditionals else SCOPED,
            recursive_includes=args.recursive_includes,
            base_dir=args.base_dir,
            encoding=args.encoding,
        )
        config.parse_defines(args.define or [])
        return config
