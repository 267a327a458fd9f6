"""
Configuration for tree filtering and prompt generation
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from .ignore.constants import IGNORE_FILENAME, MAX_IGNORE_FILE_SIZE
from .utils import get_logger

logger = get_logger(__name__)

DEFAULT_EXTENSIONS = "*.cs; *.csproj; *.sln; *.json; *.xml; *.xslt; *.sql; *.txt; *.md;"


@dataclass
class FilterConfig:
    """Settings for a TreeFilter and the prompt it feeds"""
    ignore_filename: str = IGNORE_FILENAME
    extra_patterns: List[str] = field(default_factory=list)
    max_ignore_file_size: int = MAX_IGNORE_FILE_SIZE
    extensions: str = DEFAULT_EXTENSIONS

    def __post_init__(self):
        """Validate configuration values"""
        self.ignore_filename = (self.ignore_filename or '').strip() or IGNORE_FILENAME
        if '/' in self.ignore_filename or '\\' in self.ignore_filename:
            raise ValueError(f"ignore_filename must be a bare file name: {self.ignore_filename!r}")
        self.extra_patterns = [p.strip() for p in self.extra_patterns if p and p.strip()]
        self.max_ignore_file_size = max(0, int(self.max_ignore_file_size))

    @classmethod
    def from_env(cls, base: Optional['FilterConfig'] = None) -> 'FilterConfig':
        """
        Overlay CODEPROMPT_* environment variables on top of base

        Args:
            base: Starting configuration (defaults when omitted)

        Returns:
            New FilterConfig
        """
        base = base or cls()
        values = {
            'ignore_filename': base.ignore_filename,
            'extra_patterns': list(base.extra_patterns),
            'max_ignore_file_size': base.max_ignore_file_size,
            'extensions': base.extensions,
        }

        if os.environ.get('CODEPROMPT_IGNORE_FILENAME'):
            values['ignore_filename'] = os.environ['CODEPROMPT_IGNORE_FILENAME']

        extra_env = os.environ.get('CODEPROMPT_EXTRA_PATTERNS')
        if extra_env:
            values['extra_patterns'].extend(extra_env.split(','))

        size_env = os.environ.get('CODEPROMPT_MAX_IGNORE_FILE_SIZE')
        if size_env:
            try:
                values['max_ignore_file_size'] = int(size_env)
            except ValueError:
                logger.warning(f"Ignoring invalid CODEPROMPT_MAX_IGNORE_FILE_SIZE: {size_env!r}")

        if os.environ.get('CODEPROMPT_EXTENSIONS'):
            values['extensions'] = os.environ['CODEPROMPT_EXTENSIONS']

        return cls(**values)
