from typing import List, Optional
from pydantic import BaseModel

from src.history.models import CommitRecord, FoldedSection, GraphNode


class CommitResponse(BaseModel):
    sha: str
    subject: str
    author: str
    date: str
    parents: List[str]
    is_merge: bool

    @classmethod
    def from_record(cls, commit: CommitRecord) -> "CommitResponse":
        return cls(
            sha=commit.sha,
            subject=commit.subject,
            author=commit.author,
            date=commit.date,
            parents=list(commit.parents),
            is_merge=commit.is_merge,
        )


class FoldedSectionResponse(BaseModel):
    parent_sha: str
    commits: List[CommitResponse]

    @classmethod
    def from_section(cls, section: FoldedSection) -> "FoldedSectionResponse":
        return cls(
            parent_sha=section.parent_sha,
            commits=[CommitResponse.from_record(c) for c in section.commits],
        )


class NodeResponse(BaseModel):
    kind: str # 'mainline', 'folded' or 'info'
    label: str
    commit: Optional[CommitResponse] = None
    expandable: bool = False
    merge_sha: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_node(cls, node: GraphNode) -> "NodeResponse":
        return cls(
            kind=node.kind.value,
            label=node.label,
            commit=CommitResponse.from_record(node.commit) if node.commit else None,
            expandable=node.expandable,
            merge_sha=node.merge_sha,
            message=node.message,
        )


class RefreshResponse(BaseModel):
    generation: int
    state: str
    count: int


class HealthResponse(BaseModel):
    status: str
    repo: str
    head: Optional[str] = None
    state: str
    generation: int
