"""Parsing of ``git log`` output.

The sync workflow only ever needs two things per commit: the full hash and
the subject line. Output is read through ``strip_ansi`` first so a user's
``color.ui=always`` setting cannot corrupt the parse.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

__all__ = [
    "LOG_FORMAT",
    "LogEntry",
    "contains_word",
    "find_by_word",
    "parse_log",
    "strip_ansi",
]

LOG_FORMAT = "%H %s"

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
_HASH_RE = re.compile(r"^[0-9a-f]{40}$")


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One commit from ``git log --format='%H %s'``."""

    hash: str
    subject: str


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def parse_log(output: str) -> list[LogEntry]:
    """Parse log output into entries, most recent first.

    Lines that do not start with a full 40-hex hash are skipped.
    """
    entries: list[LogEntry] = []
    for raw in strip_ansi(output).splitlines():
        line = raw.strip()
        if not line:
            continue
        commit, _, subject = line.partition(" ")
        if not _HASH_RE.match(commit):
            continue
        entries.append(LogEntry(hash=commit, subject=subject.strip()))
    return entries


def contains_word(text: str, word: str) -> bool:
    """True if ``word`` occurs in ``text`` as a whole word.

    Same rule as ``grep -w``: the match must not be preceded or followed by a
    letter, digit or underscore. ``3.12.2`` therefore does not match
    ``Release 3.12.24``.
    """
    if not word.strip():
        return False
    pattern = rf"(?<!\w){re.escape(word)}(?!\w)"
    return re.search(pattern, text) is not None


def find_by_word(entries: Iterable[LogEntry], word: str) -> list[LogEntry]:
    """All entries whose subject contains ``word``, in history order."""
    return [e for e in entries if contains_word(e.subject, word)]
