import logging
from pathlib import Path
from typing import Dict, Union

import pytest


def write_tree(root: Path, files: Dict[str, Union[str, bytes]]) -> Path:
    """
    Create files below root, creating parents as needed.

    Keys ending in '/' create empty directories.
    """
    for relative, content in files.items():
        path = root / relative
        if relative.endswith('/'):
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')
    return root


@pytest.fixture
def make_tree(tmp_path):
    def _make(files: Dict[str, Union[str, bytes]], root: Path = None) -> Path:
        return write_tree(root or tmp_path, files)
    return _make


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging() replaces root handlers; put them back afterwards"""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers = handlers
    root_logger.setLevel(level)
