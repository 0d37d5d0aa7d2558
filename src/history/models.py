from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class CommitRecord:
    sha: str
    subject: str
    author: str
    date: str
    parents: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any sequence of parents but always store an immutable tuple
        object.__setattr__(self, "parents", tuple(self.parents))

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def first_parent(self) -> Optional[str]:
        return self.parents[0] if self.parents else None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


@dataclass(frozen=True)
class FoldedSection:
    """Commits merged in through one non-first parent, oldest first."""

    parent_sha: str
    commits: Tuple[CommitRecord, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "commits", tuple(self.commits))


class NodeKind(str, Enum):
    MAINLINE = "mainline"
    FOLDED = "folded"
    INFO = "info"


@dataclass(frozen=True)
class GraphNode:
    kind: NodeKind
    label: str
    commit: Optional[CommitRecord] = None
    expandable: bool = False
    merge_sha: Optional[str] = None
    message: Optional[str] = None

