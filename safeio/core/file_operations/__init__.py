"""File operations module with retry-confirmed deletion and atomic copy."""

from .copy import AtomicCopier
from .delete import DeleteConfirmer
from .enums import CopyPhase, DeletePhase, ProbeOutcome, TargetKind
from .models import (
    CopyProgress,
    CopyProgressCallback,
    CopyTransaction,
    DeletionTarget,
    DirectoryCopyResult,
    OperationBudget,
    OperationResult,
)
from .probe import probe_directory, probe_file
from .protocols import RetryPolicyProtocol
from .retry import DeadlineRetryPolicy, ExponentialBackoffRetryPolicy, FixedRetryPolicy
from .service import SafeFileService, create_file_service
from .ticker import PeriodicTicker
from .tree import TreeOrchestrator, list_tree, walk_tree


__all__ = [
    "AtomicCopier",
    "CopyPhase",
    "CopyProgress",
    "CopyProgressCallback",
    "CopyTransaction",
    "DeletePhase",
    "DeadlineRetryPolicy",
    "DeleteConfirmer",
    "DeletionTarget",
    "DirectoryCopyResult",
    "ExponentialBackoffRetryPolicy",
    "FixedRetryPolicy",
    "OperationBudget",
    "OperationResult",
    "PeriodicTicker",
    "ProbeOutcome",
    "RetryPolicyProtocol",
    "SafeFileService",
    "TargetKind",
    "TreeOrchestrator",
    "create_file_service",
    "list_tree",
    "probe_directory",
    "probe_file",
    "walk_tree",
]
