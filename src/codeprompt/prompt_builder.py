"""
Prompt assembly from selected files
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .utils import get_logger

logger = get_logger(__name__)

CONTENT_HEADER = "--- CONTENT ---"
CRLF = "\r\n"


def parse_extension_patterns(text: Optional[str]) -> List[str]:
    """Split a ';' separated pattern list such as '*.cs; *.md;'"""
    if not text:
        return []
    return [part.strip() for part in text.split(';') if part.strip()]


def matches_extension(name: str, pattern: str) -> bool:
    """Case-insensitive whole-name wildcard match ('*' any run, '?' one char)"""
    source = re.escape(pattern).replace(r'\*', '.*').replace(r'\?', '.')
    return re.fullmatch(source, name, re.IGNORECASE | re.DOTALL) is not None


def select_files(files: Iterable[Union[str, Path]], patterns: Sequence[str]) -> List[Path]:
    """Files whose name matches any of the patterns, in input order (all files when no patterns)"""
    files = [Path(file_path) for file_path in files]
    if not patterns:
        return files
    return [
        file_path for file_path in files
        if any(matches_extension(file_path.name, pattern) for pattern in patterns)
    ]


def normalize_line_endings(text: str, newline: str = CRLF) -> str:
    """Convert CRLF, LFCR and bare CR to LF, then LF to newline"""
    if not text:
        return text
    lf = text.replace('\r\n', '\n').replace('\n\r', '\n').replace('\r', '\n')
    return lf if newline == '\n' else lf.replace('\n', newline)


def build_prompt(files: Iterable[Union[str, Path]],
                 system_prompt: Optional[str] = None,
                 user_prompt: Optional[str] = None,
                 newline: str = CRLF) -> str:
    """
    Assemble a prompt from optional system/user text and file contents

    Each file is emitted, in sorted path order, as a fenced block headed by
    its path. Files that cannot be read are replaced by an error line rather
    than aborting the prompt.

    Args:
        files: Paths of the files to include
        system_prompt: Text placed first, if not blank
        user_prompt: Text placed after the system prompt, if not blank
        newline: Line ending of the result

    Returns:
        The trimmed prompt with normalized line endings
    """
    sections = [
        text.strip()
        for text in (system_prompt, user_prompt)
        if text and text.strip()
    ]
    parts = ['\n\n'.join(sections)] if sections else []

    file_paths = sorted(str(path) for path in files)
    if file_paths:
        if parts:
            parts.append('\n\n')
        parts.append(CONTENT_HEADER + '\n')

    for file_path in file_paths:
        try:
            content = Path(file_path).read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            logger.warning(f"Could not read {file_path}: {e}")
            parts.append(f"// ERROR: Could not read file {file_path}. Reason: {e}\n")
            continue

        parts.append(f"```{file_path}\n{content}\n```\n\n")

    prompt = ''.join(parts).strip()
    logger.info(f"Built prompt from {len(file_paths)} files ({len(prompt)} characters)")
    return normalize_line_endings(prompt, newline)
