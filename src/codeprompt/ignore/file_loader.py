"""
File loader for discovering and parsing ignore files
"""

import os
from pathlib import Path
from typing import List, Dict, Optional
from dataclasses import dataclass, field

from .constants import (
    COMMENT_PREFIX,
    IGNORE_FILENAME,
    MAX_IGNORE_FILE_SIZE,
    PATH_SEPARATOR,
)
from .rule_engine import Rule, compile_rule
from ..utils import get_logger

logger = get_logger(__name__)


@dataclass
class LoadError:
    """Represents a problem reading an ignore file"""
    line: int
    message: str


@dataclass
class IgnoreFileInfo:
    """Information about a loaded ignore file"""
    path: Path
    scope_directory: str
    patterns: List[str] = field(default_factory=list)
    rules: List[Rule] = field(default_factory=list)
    errors: List[LoadError] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """Check if file was read without errors"""
        return len(self.errors) == 0


def normalize_relative(path: str) -> str:
    """Forward-slash relative path without leading/trailing slashes ('' for '.')"""
    if not path or path == '.':
        return ''
    return path.replace('\\', PATH_SEPARATOR).strip(PATH_SEPARATOR)


def depth_of(relative_path: str) -> int:
    """Number of segments in a normalized relative path"""
    return len([part for part in relative_path.split(PATH_SEPARATOR) if part])


class IgnoreFileLoader:
    """
    Handles discovering and parsing ignore files under a root directory
    """

    def __init__(self, ignore_filename: str = IGNORE_FILENAME,
                 max_file_size: int = MAX_IGNORE_FILE_SIZE):
        """
        Initialize loader

        Args:
            ignore_filename: Name of ignore files to look for
            max_file_size: Files larger than this many bytes are skipped (0 for no limit)
        """
        self.ignore_filename = ignore_filename
        self.max_file_size = max_file_size

    def scope_for(self, root_path: Path, file_path: Path) -> str:
        """Scope directory of an ignore file, relative to the root"""
        return normalize_relative(os.path.relpath(file_path.parent, root_path))

    def find_ignore_files(self, root_path: Path) -> List[Path]:
        """
        Find all ignore files under a root path

        Subdirectories that cannot be listed are skipped.

        Args:
            root_path: Root directory to search from

        Returns:
            Paths ordered by depth of their directory, then by relative path
        """
        ignore_files = []

        def _on_error(error: OSError):
            logger.debug(f"Skipping unreadable directory {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(root_path, onerror=_on_error):
            if self.ignore_filename in filenames:
                ignore_files.append(Path(dirpath) / self.ignore_filename)

        def _sort_key(path: Path):
            scope = self.scope_for(root_path, path)
            relative = normalize_relative(os.path.relpath(path, root_path))
            return depth_of(scope), relative.lower(), relative

        ignore_files.sort(key=_sort_key)
        return ignore_files

    def load_file(self, file_path: Path, scope_directory: str = '') -> IgnoreFileInfo:
        """
        Load an ignore file and compile its rules

        Unreadable files yield an info with an error and no rules.

        Args:
            file_path: Path to the ignore file
            scope_directory: Root-relative directory the rules are scoped to

        Returns:
            IgnoreFileInfo with compiled rules and statistics
        """
        info = IgnoreFileInfo(
            path=file_path,
            scope_directory=scope_directory,
            stats={
                'total_lines': 0,
                'empty_lines': 0,
                'comment_lines': 0,
                'pattern_lines': 0,
                'discarded_lines': 0,
            }
        )

        try:
            file_size = file_path.stat().st_size
        except OSError as e:
            info.errors.append(LoadError(line=0, message=f"Cannot stat file: {e}"))
            return info

        if self.max_file_size and file_size > self.max_file_size:
            info.errors.append(LoadError(
                line=0,
                message=f"File too large: {file_size} bytes (max: {self.max_file_size})"
            ))
            return info

        try:
            with open(file_path, 'r', encoding='utf-8-sig') as f:
                lines = [line.rstrip('\n') for line in f]
        except (OSError, UnicodeDecodeError) as e:
            info.errors.append(LoadError(line=0, message=f"Error reading file: {e}"))
            return info

        info.stats['total_lines'] = len(lines)

        for line in lines:
            stripped = line.strip()

            if not stripped:
                info.stats['empty_lines'] += 1
                continue

            if stripped.startswith(COMMENT_PREFIX):
                info.stats['comment_lines'] += 1
                continue

            info.stats['pattern_lines'] += 1
            rule = compile_rule(stripped, scope_directory)
            if rule is None:
                info.stats['discarded_lines'] += 1
                continue

            info.patterns.append(stripped)
            info.rules.append(rule)

        return info

    def load_all(self, root_path: Path) -> List[IgnoreFileInfo]:
        """
        Discover and load every ignore file under root_path, in rule order

        Args:
            root_path: Absolute root directory

        Returns:
            One IgnoreFileInfo per discovered file, shallow scopes first
        """
        infos = []
        for file_path in self.find_ignore_files(root_path):
            info = self.load_file(file_path, self.scope_for(root_path, file_path))
            for error in info.errors:
                logger.warning(f"{file_path}:{error.line}: {error.message}")
            infos.append(info)
        return infos
