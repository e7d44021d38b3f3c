"""Sync engine for pydropsync - continuous two-way mirroring."""

from .batch import BatchInitializer
from .comparator import FileComparator, SyncAction, SyncDecision
from .engine import CycleResult, SupervisorState, SyncEngine
from .hasher import ContentHasher, hash_bytes, hash_file
from .location import Location, PathMapper
from .loop import LoopOutcome, SyncLoop
from .operations import SyncOperations
from .pair import SyncPair, normalize_remote_root
from .pull import PullLoop
from .push import PushLoop, SnapshotDiff, diff_snapshots
from .remote import RemoteStore
from .scanner import DirectoryScanner, Snapshot, walk_local

__all__ = [
    "SyncEngine",
    "SupervisorState",
    "CycleResult",
    "SyncPair",
    "normalize_remote_root",
    "SyncOperations",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "ContentHasher",
    "hash_bytes",
    "hash_file",
    "Location",
    "PathMapper",
    "RemoteStore",
    "DirectoryScanner",
    "Snapshot",
    "walk_local",
    "SyncLoop",
    "LoopOutcome",
    "PushLoop",
    "PullLoop",
    "SnapshotDiff",
    "diff_snapshots",
    "BatchInitializer",
]
