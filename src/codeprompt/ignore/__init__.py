"""
Ignore file processing for codeprompt

This package evaluates gitignore-style rules layered across a directory tree:
- One ignore file per directory, scoped to that directory's subtree
- Rules ordered shallow scopes first, file order within a scope
- Last matching rule wins, so deeper and negating rules override earlier ones
"""

from .constants import IGNORE_FILENAME
from .rule_engine import Rule, compile_rule, translate_glob
from .file_loader import IgnoreFileLoader, IgnoreFileInfo
from .evaluator import IgnoreEvaluator, MatchResult, relativize

__all__ = [
    'IGNORE_FILENAME',
    'Rule',
    'compile_rule',
    'translate_glob',
    'IgnoreFileLoader',
    'IgnoreFileInfo',
    'IgnoreEvaluator',
    'MatchResult',
    'relativize',
]
