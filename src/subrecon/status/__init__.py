"""Submodule state gathered from the four stores, and its repair."""

from subrecon.status.classify import Issue, classify, diagnose, is_healthy, module_consistent
from subrecon.status.merge import Status, read_status
from subrecon.status.records import (
    CombinedRecord,
    IndexEntry,
    InLocalConfig,
    InManifest,
    InModuleStore,
    ResolvedPaths,
    resolve_paths,
)
from subrecon.status.repair import RepairResult, fix

__all__ = [
    "CombinedRecord",
    "IndexEntry",
    "InLocalConfig",
    "InManifest",
    "InModuleStore",
    "Issue",
    "RepairResult",
    "ResolvedPaths",
    "Status",
    "classify",
    "diagnose",
    "fix",
    "is_healthy",
    "module_consistent",
    "read_status",
    "resolve_paths",
]
