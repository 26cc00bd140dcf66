"""PyPP import hook

Makes modules written with directive comments importable. A module whose
source file carries the ``.ppy`` suffix (``name.ppy`` or the package form
``name/__init__.ppy``) is found on ``sys.path`` (or the parent package's
path), run through the preprocessor and compiled from the processed text:

    from src.loader.hook import install
    install(cache_dir='.pypp_cache')
    import settings        # settings.ppy

Processed text is never written as bytecode; with a cache directory it is
kept as a processed source artifact instead.
"""

import importlib.abc
import importlib.machinery
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, Union

from ..preprocessor.config import PreprocessorConfig
from ..preprocessor.engine import PreProcessor
from .cache import ProcessedCache

logger = logging.getLogger(__name__)

PPY_SUFFIX = '.ppy'
PACKAGE_INIT = '__init__' + PPY_SUFFIX


class PreprocessingLoader(importlib.abc.SourceLoader):
    """Loads one .ppy file through the preprocessor."""

    def __init__(self, fullname: str, path: str,
                 config: PreprocessorConfig, cache: Optional[ProcessedCache] = None):
        self.name = fullname
        self.path = path
        self.config = config
        self.cache = cache

    def get_filename(self, fullname: Optional[str] = None) -> str:
        return self.path

    def get_processed(self) -> str:
        if self.cache is not None:
            return self.cache.fetch(self.path)
        return PreProcessor(self.config).process_file(self.path)

    def get_data(self, path: str) -> bytes:
        if path == self.path:
            return self.get_processed().encode('utf-8')
        with open(path, 'rb') as f:
            return f.read()

    def get_source(self, fullname: str) -> str:
        return self.get_processed()

    def source_to_code(self, data, path, *, _optimize=-1):
        if isinstance(data, bytes):
            data = data.decode('utf-8')
        logger.debug("compiling processed source of %s", path)
        return compile(data, path, 'exec', dont_inherit=True, optimize=_optimize)


class PreprocessingFinder(importlib.abc.MetaPathFinder):
    """Meta path finder for .ppy modules and packages."""

    def __init__(self, config: Optional[PreprocessorConfig] = None,
                 cache: Optional[ProcessedCache] = None):
        self.config = config or (cache.config if cache is not None else PreprocessorConfig())
        self.cache = cache

    def find_spec(self, fullname: str, path: Optional[Sequence[str]] = None, target=None):
        name = fullname.rpartition('.')[2]
        for entry in (sys.path if path is None else path):
            if not isinstance(entry, str):
                continue
            base = Path(entry or '.')

            package_init = base / name / PACKAGE_INIT
            if package_init.is_file():
                return self._spec(fullname, package_init, [str(base / name)])

            module_file = base / (name + PPY_SUFFIX)
            if module_file.is_file():
                return self._spec(fullname, module_file, None)
        return None

    def invalidate_caches(self) -> None:
        pass

    def _spec(self, fullname: str, location: Path, search_locations: Optional[list]):
        logger.debug("found %s at %s", fullname, location)
        loader = PreprocessingLoader(fullname, str(location), self.config, self.cache)
        return importlib.util.spec_from_file_location(
            fullname, str(location), loader=loader,
            submodule_search_locations=search_locations,
        )


def install(cache_dir: Optional[Union[str, Path]] = None,
            config: Optional[PreprocessorConfig] = None) -> PreprocessingFinder:
    """Register a finder for .ppy modules on sys.meta_path and return it."""
    config = config or PreprocessorConfig()
    cache = ProcessedCache(cache_dir, config) if cache_dir is not None else None
    finder = PreprocessingFinder(config, cache)
    # Ahead of PathFinder, which would claim a package directory holding only
    # __init__.ppy as a namespace package
    index = next(
        (i for i, entry in enumerate(sys.meta_path) if entry is importlib.machinery.PathFinder),
        len(sys.meta_path),
    )
    sys.meta_path.insert(index, finder)
    return finder


def uninstall(finder: Optional[PreprocessingFinder] = None) -> None:
    """Remove *finder*, or every PreprocessingFinder, from sys.meta_path."""
    sys.meta_path[:] = [
        entry for entry in sys.meta_path
        if not (entry is finder or (finder is None and isinstance(entry, PreprocessingFinder)))
    ]
