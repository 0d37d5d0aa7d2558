import dataclasses

import pytest

from src.history.models import CommitRecord, FoldedSection

from conftest import make_commit


@pytest.mark.parametrize("parent_count", [0, 1, 2, 3])
def test_is_merge_iff_more_than_one_parent(parent_count):
    commit = make_commit("c", parents=[f"p{i}" for i in range(parent_count)])
    assert len(commit.parents) == parent_count
    assert commit.is_merge == (parent_count > 1)


def test_commit_record_is_immutable():
    commit = make_commit("c", parents=["a"])
    with pytest.raises(dataclasses.FrozenInstanceError):
        commit.subject = "changed"
    assert isinstance(commit.parents, tuple)


def test_parents_list_is_copied():
    parents = ["a" * 40]
    commit = CommitRecord(sha="b" * 40, subject="s", author="a", date="d", parents=parents)
    parents.append("c" * 40)
    assert commit.parents == ("a" * 40,)


def test_first_parent_and_short_sha():
    root = make_commit("root")
    child = make_commit("child", parents=["root", "side"])
    assert root.first_parent is None
    assert child.first_parent == root.sha
    assert child.short_sha == child.sha[:7]


def test_empty_folded_section_is_valid():
    section = FoldedSection(parent_sha="a" * 40)
    assert section.commits == ()
