"""Commit value objects shared by every repository accessor."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CommitMetadata(BaseModel):
    """The part of a commit that survives a replay.

    Author identity, authored timestamp and message are reused
    verbatim; the committer becomes whoever runs the replay.
    """

    model_config = ConfigDict(frozen=True)

    author_name: str
    author_email: str
    author_date: str = Field(
        description="Raw git date: '<unix-seconds> <+hhmm>'"
    )
    message: str


class Commit(BaseModel):
    """An immutable commit as read from the object database."""

    model_config = ConfigDict(frozen=True)

    sha: str
    parents: tuple[str, ...] = ()
    tree: str
    author_name: str = ""
    author_email: str = ""
    author_date: str = ""
    committer_name: str = ""
    committer_email: str = ""
    committer_date: str = ""
    message: str = ""

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def first_parent(self) -> str | None:
        return self.parents[0] if self.parents else None

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0].strip()

    @property
    def short(self) -> str:
        return self.sha[:8]

    @property
    def metadata(self) -> CommitMetadata:
        return CommitMetadata(
            author_name=self.author_name,
            author_email=self.author_email,
            author_date=self.author_date,
            message=self.message,
        )
