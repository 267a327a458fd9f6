"""
Rule engine: compiles ignore-file lines into matchable rules
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .constants import COMMENT_PREFIX, NEGATION_PREFIX, PATH_SEPARATOR
from ..utils import get_logger

logger = get_logger(__name__)

# Matching is case-insensitive for every rule; there is no per-project switch.
MATCH_FLAGS = re.IGNORECASE | re.DOTALL

_UNANCHORED_PREFIX = r'(?:.*/)?'
_DIRECTORY_SUFFIX = r'(?:/.*)?'


@dataclass(frozen=True)
class Rule:
    """Compiled representation of one ignore-file line"""
    scope_directory: str
    is_negation: bool
    is_directory_only: bool
    is_root_anchored: bool
    pattern: str
    matcher: 're.Pattern[str]' = field(repr=False, compare=False)

    def matches(self, test_path: str) -> bool:
        """Exact match of a scope-relative path against this rule"""
        return self.matcher.fullmatch(test_path) is not None

    def scoped_path(self, relative_path: str) -> Optional[str]:
        """
        Portion of a root-relative path this rule tests, or None when the
        path lies outside the rule's scope directory.
        """
        scope = self.scope_directory
        if not scope:
            return relative_path

        if relative_path[:len(scope)].lower() != scope.lower():
            return None
        remainder = relative_path[len(scope):]
        if not remainder:
            return ''
        if remainder.startswith(PATH_SEPARATOR):
            return remainder[1:]
        return None


def translate_glob(body: str) -> str:
    """
    Translate a glob body into regular expression source.

    ``**`` crosses separators (``**/`` may also match nothing at all),
    ``*`` and ``?`` stay within one segment,
    ``[...]`` is a character class (``!`` or ``^`` negates) and every other
    character is literal. An unterminated ``[`` is a literal bracket.
    """
    parts = []
    i = 0
    length = len(body)

    while i < length:
        char = body[i]

        if char == '*':
            if i + 1 < length and body[i + 1] == '*':
                if i + 2 < length and body[i + 2] == '/':
                    # '**/' spans zero or more whole segments
                    parts.append('(?:.*/)?')
                    i += 3
                else:
                    parts.append('.*')
                    i += 2
                continue
            parts.append('[^/]*')
        elif char == '?':
            parts.append('[^/]')
        elif char == '/':
            parts.append('/')
        elif char == '[':
            class_source, end = _translate_class(body, i)
            if class_source is None:
                parts.append(r'\[')
            else:
                parts.append(class_source)
                i = end
        else:
            parts.append(re.escape(char))

        i += 1

    return ''.join(parts)


def _translate_class(body: str, start: int) -> Tuple[Optional[str], int]:
    """
    Translate the character class opening at ``start``.

    Returns the class source and the index of its closing bracket, or
    ``(None, start)`` when the bracket must be taken literally.
    """
    end = body.find(']', start + 1)
    if end <= start + 1:
        return None, start

    content = body[start + 1:end]
    negated = content[0] in ('!', '^')
    if negated:
        content = content[1:]
    if not content:
        return None, start

    members = []
    for char in content:
        # '-' keeps range semantics, everything else is a literal member
        members.append(char if char == '-' else re.escape(char))

    return '[' + ('^' if negated else '') + ''.join(members) + ']', end


def build_regex(body: str, anchored: bool, directory_only: bool) -> str:
    """Full regular expression source for a rule body"""
    prefix = '' if anchored else _UNANCHORED_PREFIX
    suffix = _DIRECTORY_SUFFIX if directory_only else ''
    return prefix + translate_glob(body) + suffix


def compile_rule(line: Optional[str], scope_directory: str = '') -> Optional[Rule]:
    """
    Compile one raw ignore-file line into a Rule.

    Args:
        line: Raw text line from an ignore file
        scope_directory: Root-relative, forward-slash path of the directory
            holding the ignore file ('' for the root itself)

    Returns:
        The compiled Rule, or None for blank lines, comments and lines
        whose pattern is empty once its modifiers are stripped
    """
    if not line:
        return None

    text = line.strip()
    if not text or text.startswith(COMMENT_PREFIX):
        return None

    original = text

    is_negation = text.startswith(NEGATION_PREFIX)
    if is_negation:
        text = text[1:].strip()
        if not text:
            return None

    is_directory_only = text.endswith(PATH_SEPARATOR) and not text.endswith('\\' + PATH_SEPARATOR)
    if is_directory_only:
        text = text.rstrip(PATH_SEPARATOR)

    is_root_anchored = text.startswith(PATH_SEPARATOR)
    if is_root_anchored:
        text = text.lstrip(PATH_SEPARATOR)

    if not text:
        return None

    source = build_regex(text, is_root_anchored, is_directory_only)
    try:
        matcher = re.compile(source, MATCH_FLAGS)
    except re.error as e:
        logger.warning(f"Discarding pattern '{original}': {e}")
        return None

    logger.trace(f"Compiled '{original}' (scope '{scope_directory}') -> {source}")

    return Rule(
        scope_directory=scope_directory,
        is_negation=is_negation,
        is_directory_only=is_directory_only,
        is_root_anchored=is_root_anchored,
        pattern=original,
        matcher=matcher,
    )

