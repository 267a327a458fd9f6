"""
Ignore evaluator: layered, last-match-wins verdicts over a loaded rule set
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union, Any

from .constants import IGNORE_FILENAME, MAX_IGNORE_FILE_SIZE, PATH_SEPARATOR
from .file_loader import IgnoreFileLoader, normalize_relative
from .rule_engine import Rule
from ..utils import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class MatchResult:
    """Result of matching a path against the rule set"""
    should_ignore: bool
    relative_path: Optional[str] = None
    matched_rule: Optional[Rule] = None

    @property
    def matched_pattern(self) -> Optional[str]:
        return self.matched_rule.pattern if self.matched_rule else None

    @property
    def matched_scope(self) -> Optional[str]:
        return self.matched_rule.scope_directory if self.matched_rule else None


def relativize(root_path: PathLike, candidate: PathLike) -> Optional[str]:
    """
    Root-relative, forward-slash form of candidate.

    Relative candidates are taken as relative to the root. Returns None when
    the candidate lies outside the root or cannot be relativized; returns ''
    for the root itself.
    """
    try:
        root = os.fspath(root_path)
        path = os.fspath(candidate)
        if not os.path.isabs(path):
            path = os.path.join(root, path)
        relative = os.path.relpath(os.path.normpath(path), root)
    except (TypeError, ValueError) as e:
        logger.debug(f"Cannot relativize {candidate!r} against {root_path!r}: {e}")
        return None

    relative = normalize_relative(relative)
    if relative == '..' or relative.startswith('..' + PATH_SEPARATOR):
        return None
    return relative


class IgnoreEvaluator:
    """
    Decides whether paths under one root are ignored.

    Holds the compiled rules of every ignore file under the root, ordered
    shallow scopes first and file order within a scope. The evaluator is
    read-only after construction and safe to share between threads.
    """

    def __init__(self,
                 root_path: PathLike,
                 rules: Sequence[Rule] = (),
                 ignore_files: Sequence[Path] = (),
                 ignore_filename: str = IGNORE_FILENAME):
        self._root_path = Path(root_path)
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._ignore_files: Tuple[Path, ...] = tuple(ignore_files)
        self.ignore_filename = ignore_filename

    @classmethod
    def load(cls,
             root_path: Optional[PathLike],
             ignore_filename: str = IGNORE_FILENAME,
             max_file_size: int = MAX_IGNORE_FILE_SIZE) -> Optional['IgnoreEvaluator']:
        """
        Load every ignore file under root_path into a new evaluator

        Args:
            root_path: Directory to evaluate paths against
            ignore_filename: Name of the ignore files to collect
            max_file_size: Ignore files larger than this are skipped

        Returns:
            The evaluator (possibly with no rules), or None when the root is
            empty, missing, not a directory or cannot be resolved
        """
        if root_path is None or not str(root_path).strip():
            return None

        try:
            resolved = Path(root_path).expanduser().resolve()
        except (OSError, RuntimeError, ValueError) as e:
            logger.warning(f"Cannot resolve root {root_path}: {e}")
            return None

        if not resolved.is_dir():
            logger.debug(f"Root is not a directory: {resolved}")
            return None

        loader = IgnoreFileLoader(ignore_filename, max_file_size)
        infos = loader.load_all(resolved)

        rules = []
        for info in infos:
            rules.extend(info.rules)

        logger.info(
            f"Loaded {len(rules)} rules from {len(infos)} {ignore_filename} files under {resolved}",
            extra={'extra': {'root': str(resolved), 'rules': len(rules), 'ignore_files': len(infos)}}
        )

        return cls(
            resolved,
            rules,
            ignore_files=[info.path for info in infos],
            ignore_filename=ignore_filename,
        )

    @property
    def root_path(self) -> Path:
        return self._root_path

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    @property
    def ignore_files(self) -> Tuple[Path, ...]:
        return self._ignore_files

    def is_ignored(self, path: PathLike, is_directory: bool) -> bool:
        """
        Check if a path is ignored

        Args:
            path: Candidate path (absolute, or relative to the root); it need
                not exist on disk
            is_directory: Whether the candidate is a directory

        Returns:
            True if the last matching rule ignores the path. The root itself,
            paths outside the root and unrelativizable paths are never ignored.
        """
        return self.explain(path, is_directory).should_ignore

    def explain(self, path: PathLike, is_directory: bool) -> MatchResult:
        """
        Evaluate a path and report which rule decided the verdict

        Args:
            path: Candidate path (absolute, or relative to the root)
            is_directory: Whether the candidate is a directory

        Returns:
            MatchResult with the verdict and the last matching rule, if any
        """
        relative_path = relativize(self._root_path, path)
        if not relative_path:
            return MatchResult(should_ignore=False, relative_path=relative_path)

        if not self._rules:
            return MatchResult(should_ignore=False, relative_path=relative_path)

        verdict = False
        deciding_rule = None

        for rule in self._rules:
            if rule.is_directory_only and not is_directory:
                continue

            test_path = rule.scoped_path(relative_path)
            if test_path is None:
                continue

            if rule.matches(test_path):
                verdict = not rule.is_negation
                deciding_rule = rule

        logger.trace(
            f"Ignore check for {relative_path}: {verdict} "
            f"(matched: {deciding_rule.pattern if deciding_rule else None})"
        )

        return MatchResult(
            should_ignore=verdict,
            relative_path=relative_path,
            matched_rule=deciding_rule,
        )

    def get_stats(self) -> Dict[str, Any]:
        """
        Get evaluator statistics

        Returns:
            Dictionary with root, file and rule counts
        """
        return {
            'root_path': str(self._root_path),
            'ignore_filename': self.ignore_filename,
            'ignore_files': len(self._ignore_files),
            'rules': len(self._rules),
            'negation_rules': sum(1 for rule in self._rules if rule.is_negation),
            'directory_only_rules': sum(1 for rule in self._rules if rule.is_directory_only),
        }
