"""Index synchronization: engine, service layer, results and progress events."""

from notesync.sync.engine import IndexSyncEngine, content_hash
from notesync.sync.events import ProgressEvent, ProgressStatus, RebuildTally
from notesync.sync.results import OperationResult
from notesync.sync.service import IndexService, KeyedLocks

__all__ = [
    "IndexService",
    "IndexSyncEngine",
    "KeyedLocks",
    "OperationResult",
    "ProgressEvent",
    "ProgressStatus",
    "RebuildTally",
    "content_hash",
]
