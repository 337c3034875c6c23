"""
File finders

Walk the configured directories and return a deterministic, duplicate
free list of absolute file paths: find-first files first (in the order
given), then every other match ordered by directory, then file name.
"""

import os
import re
from pathlib import Path
from typing import List, Optional

from dibuild.exceptions import FinderError
from dibuild.logging import get_logger
from dibuild.options import FinderOptions, ServiceFileFinderOptions, CompilerPassFinderOptions

logger = get_logger(__name__)


class FileFinder:
    """Generic finder driven by FinderOptions"""

    def __init__(self, options: FinderOptions, cwd: Optional[str] = None):
        self.options = options
        self.cwd = Path(cwd) if cwd is not None else Path(os.getcwd())
        self._v_pattern = re.compile(options.pattern) if options.pattern else None

    def find(self) -> List[str]:
        """
        Scan and order the matching files.

        Raises:
            FinderError: An explicitly named file does not exist or a
                directory cannot be read
        """
        scanned = self._dedupe(self._scan_directories() + self._explicit_files())
        first = self._resolve_find_first(scanned)
        result = first + [path for path in scanned if path not in first]

        logger.debug(
            "%s found %d file(s) (%d find-first)", type(self).__name__, len(result), len(first)
        )
        return result

    def matches(self, name: str) -> bool:
        names = {entry for entry in self.options.files if not _is_path(entry)}
        if name in names:
            return True
        return bool(self._v_pattern and self._v_pattern.search(name))

    def _scan_directories(self) -> List[str]:
        found: List[str] = []
        excluded = set(self.options.excluded_directories)

        def _raise(error: OSError):
            raise FinderError(
                f"Cannot scan directory '{error.filename}': {error.strerror}",
                path=error.filename,
                original_error=error,
            )

        for directory in self.options.directories:
            matches = []
            for root, dirnames, filenames in os.walk(directory, onerror=_raise):
                dirnames[:] = sorted(d for d in dirnames if d not in excluded)
                for name in filenames:
                    if self.matches(name):
                        matches.append((root, name))
            # directory-then-filename lexical order
            found.extend(str(Path(root, name)) for root, name in sorted(matches))
        return found

    def _explicit_files(self) -> List[str]:
        explicit = []
        for entry in self.options.files:
            if not _is_path(entry):
                continue
            path = self._absolute(entry)
            if not path.is_file():
                raise FinderError(f"File '{entry}' does not exist", path=str(path))
            explicit.append(str(path))
        return explicit

    def _resolve_find_first(self, scanned: List[str]) -> List[str]:
        first: List[str] = []
        for entry in self.options.find_first:
            resolved = next((candidate for candidate in scanned if _ends_with(candidate, entry)), None)
            if resolved is None and self._absolute(entry).is_file():
                resolved = str(self._absolute(entry))
            if resolved is None:
                logger.warning("Find-first file '%s' not found, ignoring it", entry)
                continue
            resolved = _canonical(resolved, scanned)
            if resolved not in first:
                first.append(resolved)
        return first

    def _absolute(self, entry: str) -> Path:
        path = Path(os.path.expanduser(entry))
        if not path.is_absolute():
            path = self.cwd / path
        return Path(os.path.normpath(path))

    @staticmethod
    def _dedupe(paths: List[str]) -> List[str]:
        seen = set()
        unique = []
        for path in paths:
            key = os.path.realpath(path)
            if key not in seen:
                seen.add(key)
                unique.append(path)
        return unique


class ServiceFileFinder(FileFinder):
    """Finds service definition files"""

    def __init__(self, options: ServiceFileFinderOptions, cwd: Optional[str] = None):
        super().__init__(options, cwd)


class CompilerPassFinder(FileFinder):
    """Finds compiler pass files (default pattern: *.cpass.py)"""

    def __init__(self, options: CompilerPassFinderOptions, cwd: Optional[str] = None):
        super().__init__(options, cwd)


def _is_path(entry: str) -> bool:
    return os.sep in entry or (os.altsep is not None and os.altsep in entry)


def _ends_with(path: str, entry: str) -> bool:
    """Component-wise suffix match: 'b.xml' and 'svc/b.xml' match '/x/svc/b.xml'."""
    wanted = Path(os.path.normpath(entry)).parts
    return Path(path).parts[-len(wanted):] == wanted if wanted else False


def _canonical(path: str, scanned: List[str]) -> str:
    """Prefer the spelling used in the scan so duplicates collapse."""
    real = os.path.realpath(path)
    for candidate in scanned:
        if os.path.realpath(candidate) == real:
            return candidate
    return path
