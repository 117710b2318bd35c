"""Process exit codes for the wcsync CLI."""

from enum import IntEnum

__all__ = ["ExitCode"]


class ExitCode(IntEnum):
    """Exit codes returned by ``wcsync``.

    The sync either completes or it does not: every failure, whether a wrong
    branch, an unresolvable release or a git command that exited non-zero,
    maps to the same status so wrapper scripts only need one check.
    """

    OK = 0
    SYNC_FAILED = 1
