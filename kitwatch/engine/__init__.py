"""Engine components sequencing validate → dedup → acquire."""

from .acquirer import Acquirer, Kit
from .candidate import Candidate, FeedSource, extract_extension, normalize_url
from .dedup import DedupRecord, DedupStore
from .errors import AcquireError, KitwatchError, StoreError
from .results import CandidateResult, Outcome, RunSummary
from .thread_pool import WorkerPool
from .validator import Prober, ProbeError, ProbeMetadata, ValidationResult, Validator

__all__ = [
    "AcquireError",
    "Acquirer",
    "Candidate",
    "CandidateResult",
    "DedupRecord",
    "DedupStore",
    "FeedSource",
    "Kit",
    "KitwatchError",
    "Outcome",
    "ProbeError",
    "ProbeMetadata",
    "Prober",
    "RunSummary",
    "StoreError",
    "ValidationResult",
    "Validator",
    "WorkerPool",
    "extract_extension",
    "normalize_url",
]
