"""
codeprompt - assemble text prompts from gitignore-filtered directory trees
"""

from .config import FilterConfig
from .ignore import IgnoreEvaluator, MatchResult, Rule, compile_rule
from .tree_filter import TreeEntry, TreeFilter, TreeNode

__version__ = "0.1.0"

__all__ = [
    'FilterConfig',
    'IgnoreEvaluator',
    'MatchResult',
    'Rule',
    'compile_rule',
    'TreeEntry',
    'TreeFilter',
    'TreeNode',
]
