"""Git access for the sync workflow.

- Repository: one method per git command, each returning a Result
- log: parsing of ``git log`` output and whole-word commit search

Usage:
    from wcsync.git import Repository

    repo = Repository(Path("."))
    match repo.current_branch():
        case Ok(branch):
            print(branch)
        case Err(e):
            print(e.message)
"""

from wcsync.git.log import (
    LOG_FORMAT,
    LogEntry,
    contains_word,
    find_by_word,
    parse_log,
    strip_ansi,
)
from wcsync.git.repository import GitError, Repository

__all__ = [
    # Repository
    "GitError",
    "Repository",
    # Log
    "LOG_FORMAT",
    "LogEntry",
    "contains_word",
    "find_by_word",
    "parse_log",
    "strip_ansi",
]
