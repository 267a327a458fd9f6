"""
Tree filter: walks a directory tree and exposes only non-ignored entries
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Union

import pathspec

from .config import FilterConfig
from .ignore import IgnoreEvaluator, relativize
from .utils import get_logger

logger = get_logger(__name__)

HIDDEN_DOT_DIRECTORY = 'dot-directory'
HIDDEN_EXTRA_PATTERN = 'extra-pattern'
HIDDEN_IGNORE_RULE = 'ignore-rule'


@dataclass(frozen=True)
class TreeEntry:
    """One visible filesystem entry produced by a walk"""
    path: Path
    relative_path: str
    is_directory: bool
    depth: int

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class TreeNode:
    """Visible directory tree, rooted at the filter's root"""
    name: str
    path: Path
    relative_path: str
    is_directory: bool
    children: List['TreeNode'] = field(default_factory=list)

    def iter_nodes(self) -> Iterator['TreeNode']:
        """This node and all descendants, pre-order"""
        yield self
        for child in self.children:
            yield from child.iter_nodes()


class TreeFilter:
    """
    Decides which entries of a directory tree are exposed.

    Directories whose name starts with '.' are always hidden; everything else
    is decided by the caller's extra patterns and the current root's
    IgnoreEvaluator. The evaluator is replaced wholesale by set_root().
    """

    def __init__(self, config: Optional[FilterConfig] = None):
        self.config = config or FilterConfig()
        self._root_path: Optional[Path] = None
        self._evaluator: Optional[IgnoreEvaluator] = None
        self._extra_spec: Optional[pathspec.PathSpec] = None
        if self.config.extra_patterns:
            self._extra_spec = pathspec.PathSpec.from_lines(
                'gitwildmatch', self.config.extra_patterns
            )

    @property
    def root_path(self) -> Optional[Path]:
        return self._root_path

    @property
    def evaluator(self) -> Optional[IgnoreEvaluator]:
        return self._evaluator

    def set_root(self, root_path: Optional[Union[str, Path]]) -> Optional[IgnoreEvaluator]:
        """
        Switch to a new root directory, reloading its ignore rules

        Args:
            root_path: New root directory

        Returns:
            The new evaluator, or None when the root is missing (in which
            case nothing is ignored)
        """
        evaluator = IgnoreEvaluator.load(
            root_path,
            ignore_filename=self.config.ignore_filename,
            max_file_size=self.config.max_ignore_file_size,
        )
        self._evaluator = evaluator

        if evaluator is not None:
            self._root_path = evaluator.root_path
        elif root_path is not None and str(root_path).strip():
            self._root_path = Path(root_path).expanduser().absolute()
        else:
            self._root_path = None

        if evaluator is None:
            logger.warning(f"No ignore evaluator for {root_path}; nothing will be filtered")
        return evaluator

    def hide_reason(self, path: Union[str, Path], is_directory: bool) -> Optional[str]:
        """
        Determine which check hides an entry

        Args:
            path: Absolute path of the entry
            is_directory: Whether the entry is a directory

        Returns:
            HIDDEN_DOT_DIRECTORY, HIDDEN_EXTRA_PATTERN or HIDDEN_IGNORE_RULE,
            or None if the entry is visible
        """
        if is_directory:
            name = os.path.basename(os.fspath(path).rstrip('/\\'))
            if name.startswith('.'):
                return HIDDEN_DOT_DIRECTORY

        if self._extra_spec is not None and self._root_path is not None:
            relative = relativize(self._root_path, path)
            if relative:
                candidate = relative + '/' if is_directory else relative
                if self._extra_spec.match_file(candidate):
                    return HIDDEN_EXTRA_PATTERN

        if self._evaluator is not None and self._evaluator.is_ignored(path, is_directory):
            return HIDDEN_IGNORE_RULE
        return None

    def should_hide(self, path: Union[str, Path], is_directory: bool) -> bool:
        """
        Check if an entry should be hidden from the tree

        Directories whose name starts with '.' are hidden regardless of any
        ignore rule.

        Args:
            path: Absolute path of the entry
            is_directory: Whether the entry is a directory

        Returns:
            True if the entry (and, for directories, its subtree) is hidden
        """
        return self.hide_reason(path, is_directory) is not None

    def walk(self, cancel_event=None) -> Iterator[TreeEntry]:
        """
        Walk the current root, yielding visible entries in pre-order

        Within a directory, subdirectories come first, then files, each group
        sorted by name case-insensitively. Hidden directories are pruned with
        their subtree; directories that cannot be listed contribute nothing.

        Args:
            cancel_event: Optional object with is_set(); the walk stops
                between entries once it is set

        Yields:
            TreeEntry for every visible entry below the root
        """
        if self._root_path is None:
            return
        yield from self._walk_directory(self._root_path, '', 0, cancel_event)

    def _walk_directory(self, directory: Path, relative: str, depth: int,
                        cancel_event) -> Iterator[TreeEntry]:
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {directory}: {e}")
            return

        directories = []
        files = []
        for entry in entries:
            try:
                is_directory = entry.is_dir()
            except OSError:
                is_directory = False
            (directories if is_directory else files).append(entry)

        directories.sort(key=lambda e: (e.name.lower(), e.name))
        files.sort(key=lambda e: (e.name.lower(), e.name))

        for entry in directories:
            if cancel_event is not None and cancel_event.is_set():
                return
            entry_path = directory / entry.name
            if self.should_hide(entry_path, True):
                logger.trace(f"Pruned directory {entry_path}")
                continue

            entry_relative = f"{relative}/{entry.name}" if relative else entry.name
            yield TreeEntry(entry_path, entry_relative, True, depth)

            # Symlinked directories are listed but not descended into
            if entry.is_symlink():
                continue
            yield from self._walk_directory(entry_path, entry_relative, depth + 1, cancel_event)

        for entry in files:
            if cancel_event is not None and cancel_event.is_set():
                return
            entry_path = directory / entry.name
            if self.should_hide(entry_path, False):
                logger.trace(f"Hid file {entry_path}")
                continue

            entry_relative = f"{relative}/{entry.name}" if relative else entry.name
            yield TreeEntry(entry_path, entry_relative, False, depth)

    def iter_files(self, cancel_event=None) -> Iterator[TreeEntry]:
        """Visible files only"""
        for entry in self.walk(cancel_event):
            if not entry.is_directory:
                yield entry

    def build_tree(self, cancel_event=None) -> Optional[TreeNode]:
        """
        Build the visible tree below the current root

        Returns:
            TreeNode for the root, or None when no root is set
        """
        if self._root_path is None:
            return None

        root = TreeNode(
            name=self._root_path.name or str(self._root_path),
            path=self._root_path,
            relative_path='',
            is_directory=True,
        )
        stack = [root]

        for entry in self.walk(cancel_event):
            # stack[depth] is the parent of an entry at this depth
            del stack[entry.depth + 1:]
            node = TreeNode(
                name=entry.name,
                path=entry.path,
                relative_path=entry.relative_path,
                is_directory=entry.is_directory,
            )
            stack[-1].children.append(node)
            if entry.is_directory:
                stack.append(node)

        return root

    def render_tree(self, cancel_event=None) -> str:
        """Indented text listing of the visible tree"""
        root = self.build_tree(cancel_event)
        if root is None:
            return ''

        lines = [root.name + '/']

        def _render(node: TreeNode, indent: int):
            for child in node.children:
                suffix = '/' if child.is_directory else ''
                lines.append('  ' * indent + child.name + suffix)
                if child.is_directory:
                    _render(child, indent + 1)

        _render(root, 1)
        return '\n'.join(lines)
