"""PyPP processed-output cache

Processed text is stored in a cache directory, one artifact per source file
and configuration. An artifact is reused while it is at least as new as its
source; included files are not tracked.
"""

import logging
import threading
from hashlib import md5
from pathlib import Path
from typing import Dict, Optional, Union

from ..preprocessor.config import PreprocessorConfig
from ..preprocessor.constants import host_constants
from ..preprocessor.engine import PreProcessor, read_source
from ..preprocessor.errors import NotFoundError

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = '.py'
EXCLUDED_CLEANUP_FILENAMES = {'.gitignore'}


def prepare_cache_directory(path: Path) -> None:
    """Try to create and fill cache directory with required files."""
    if path.exists():
        return

    path.mkdir(parents=True)
    create_cache_gitignore(path)


def create_cache_gitignore(path: Path) -> None:
    """Create .gitignore file so the cache never ends up in version control."""
    with (path / '.gitignore').open('w') as f:
        f.write("# Internally created by PyPP\n")
        f.write("# Do not include processed sources into git VCS\n")
        f.write("*\n")


def config_fingerprint(config: PreprocessorConfig) -> str:
    """Options that change the output of a pass, as a stable string."""
    defines = ','.join(f"{name}={value}" for name, value in sorted(config.defines.items()))
    return '|'.join((
        defines,
        config.conditional_mode,
        str(config.recursive_includes),
        str(config.base_dir or ''),
        config.encoding,
        repr(config.constants if config.constants is not None else host_constants()),
    ))


class ProcessedCache:
    """Build-once store of preprocessed sources.

    Builds for the same artifact are serialized; different artifacts may be
    built concurrently.
    """

    def __init__(self, cache_dir: Union[str, Path], config: Optional[PreprocessorConfig] = None):
        self.cache_dir = Path(cache_dir)
        self.config = config or PreprocessorConfig()
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def artifact_path(self, source: Path) -> Path:
        key = f"{source.absolute()}|{config_fingerprint(self.config)}"
        digest = md5(key.encode(), usedforsecurity=False).hexdigest()
        return self.cache_dir / f"{source.stem}_{digest}{ARTIFACT_SUFFIX}"

    def fetch(self, source: Union[str, Path]) -> str:
        """Return processed text for *source*, building it when stale or missing."""
        source = Path(source)
        if not source.is_file():
            raise NotFoundError(source)

        artifact = self.artifact_path(source)
        with self._lock_for(artifact.name):
            if self._is_fresh(source, artifact):
                logger.debug("cache hit for %s (%s)", source, artifact.name)
                return read_source(artifact, self.config.encoding)

            logger.debug("cache miss for %s, processing", source)
            output = PreProcessor(self.config).process_file(source)
            prepare_cache_directory(self.cache_dir)
            self._write(artifact, output)
            return output

    def clear(self) -> int:
        """Remove all artifacts; return how many were removed."""
        if not self.cache_dir.exists():
            return 0
        removed = 0
        for file in self.cache_dir.iterdir():
            if not file.is_file() or file.name in EXCLUDED_CLEANUP_FILENAMES:
                continue
            if file.suffix != ARTIFACT_SUFFIX:
                continue
            file.unlink(missing_ok=True)
            removed += 1
        return removed

    def _is_fresh(self, source: Path, artifact: Path) -> bool:
        if not artifact.exists():
            return False
        return artifact.stat().st_mtime_ns >= source.stat().st_mtime_ns

    def _write(self, artifact: Path, output: str) -> None:
        temporary = artifact.with_name(artifact.name + '.tmp')
        with open(temporary, 'w', encoding=self.config.encoding, newline='') as f:
            f.write(output)
        temporary.replace(artifact)

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())
