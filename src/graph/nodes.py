from typing import Iterable, List

from src.history.models import CommitRecord, GraphNode, NodeKind

EMPTY_FOLD_MESSAGE = "No commits merged in"


def mainline_node(commit: CommitRecord) -> GraphNode:
    return GraphNode(
        kind=NodeKind.MAINLINE,
        label=commit.subject,
        commit=commit,
        expandable=commit.is_merge,
    )


def mainline_nodes(snapshot: Iterable[CommitRecord]) -> List[GraphNode]:
    return [mainline_node(c) for c in snapshot]


def folded_nodes(merge: CommitRecord, commits: List[CommitRecord]) -> List[GraphNode]:
    """Children shown under an unfolded merge; an empty fold gets one info node."""
    if not commits:
        return [GraphNode(kind=NodeKind.INFO, label=EMPTY_FOLD_MESSAGE, message=EMPTY_FOLD_MESSAGE)]
    return [
        GraphNode(
            kind=NodeKind.FOLDED,
            label=c.subject,
            commit=c,
            merge_sha=merge.sha,
        )
        for c in commits
    ]
