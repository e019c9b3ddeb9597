"""Candidate sources feeding the pipeline."""

from .base import CandidateSource
from .static import ChainedFeed, FileFeed, ManualFeed
from .traversal import DirectoryTraversalFeed, archive_guesses, parent_directories

__all__ = [
    "CandidateSource",
    "ChainedFeed",
    "DirectoryTraversalFeed",
    "FileFeed",
    "ManualFeed",
    "archive_guesses",
    "parent_directories",
]
