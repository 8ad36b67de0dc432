"""Commit graph accessors."""

from topbase.git.commit import Commit, CommitMetadata
from topbase.git.dryrun import DryRunRepository
from topbase.git.local import GitRepository
from topbase.git.memory import MemoryRepository
from topbase.git.repository import Repository

__all__ = [
    "Commit",
    "CommitMetadata",
    "DryRunRepository",
    "GitRepository",
    "MemoryRepository",
    "Repository",
]
