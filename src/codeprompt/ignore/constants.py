"""
Central configuration for ignore file processing
"""

# Single source of truth for the ignore filename
IGNORE_FILENAME = ".gitignore"

# Line markers of the ignore file dialect
COMMENT_PREFIX = "#"
NEGATION_PREFIX = "!"
PATH_SEPARATOR = "/"

# Limits for safety and performance
MAX_IGNORE_FILE_SIZE = 1024 * 1024  # 1MB
