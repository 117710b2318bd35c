"""Release synchronization between the integration branch and the public mirror."""

from wcsync.sync.model import ReleasePointer, SyncError, SyncErrorKind, SyncReport
from wcsync.sync.workflow import ReleaseSyncWorkflow

__all__ = [
    "ReleasePointer",
    "ReleaseSyncWorkflow",
    "SyncError",
    "SyncErrorKind",
    "SyncReport",
]
