import os
import subprocess

import pytest

from src.graph.model import GraphModel, GraphState
from src.history.refs import is_reference_path, reference_roots, resolve_git_dir, resolve_head

from conftest import requires_git

pytestmark = requires_git

ENV = {
    "GIT_AUTHOR_NAME": "Tester",
    "GIT_AUTHOR_EMAIL": "tester@example.com",
    "GIT_COMMITTER_NAME": "Tester",
    "GIT_COMMITTER_EMAIL": "tester@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def git(repo, *args):
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        env={**os.environ, **ENV},
    )
    if result.returncode != 0:
        raise RuntimeError(f"Failed to run git command: {args}\n{result.stderr}")
    return result.stdout.strip()


def commit(repo, name):
    (repo / f"{name}.txt").write_text(name + "\n")
    git(repo, "add", f"{name}.txt")
    git(repo, "commit", "-q", "-m", name)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture
def repo(tmp_path):
    """main: base, main1, M1 (merges a1-a2), M2 (octopus of b1, c1, d1).

    b1 forks from base; c1 and d1 both fork from a2.
    """
    git(tmp_path, "init", "-q")
    git(tmp_path, "symbolic-ref", "HEAD", "refs/heads/main")
    shas = {"base": commit(tmp_path, "base")}

    git(tmp_path, "checkout", "-q", "-b", "feature-a")
    shas["a1"] = commit(tmp_path, "a1")
    shas["a2"] = commit(tmp_path, "a2")

    git(tmp_path, "checkout", "-q", "-b", "feature-c")
    shas["c1"] = commit(tmp_path, "c1")

    git(tmp_path, "checkout", "-q", "main")
    shas["main1"] = commit(tmp_path, "main1")

    git(tmp_path, "checkout", "-q", "-b", "feature-b", shas["base"])
    shas["b1"] = commit(tmp_path, "b1")

    git(tmp_path, "checkout", "-q", "main")
    git(tmp_path, "merge", "-q", "--no-ff", "-m", "Merge feature-a", "feature-a")
    shas["M1"] = git(tmp_path, "rev-parse", "HEAD")

    git(tmp_path, "checkout", "-q", "-b", "feature-d", "feature-a")
    shas["d1"] = commit(tmp_path, "d1")
    git(tmp_path, "checkout", "-q", "main")
    git(tmp_path, "merge", "-q", "--no-ff", "-m", "Octopus", "feature-b", "feature-c", "feature-d")
    shas["M2"] = git(tmp_path, "rev-parse", "HEAD")
    return tmp_path, shas


@pytest.mark.asyncio
async def test_first_parent_listing(repo):
    root, shas = repo
    model = GraphModel(root)
    snapshot = await model.refresh()

    assert [c.sha for c in snapshot] == [shas["M2"], shas["M1"], shas["main1"], shas["base"]]
    assert snapshot[-1].parents == ()
    assert snapshot[0].is_merge and len(snapshot[0].parents) == 4
    assert model.state == GraphState.LOADED


@pytest.mark.asyncio
async def test_unfold_simple_merge(repo):
    root, shas = repo
    model = GraphModel(root)
    await model.refresh()

    expanded = await model.expand(shas["M1"])

    assert [c.sha for c in expanded] == [shas["a1"], shas["a2"]]
    assert [c.subject for c in expanded] == ["a1", "a2"]


@pytest.mark.asyncio
async def test_unfold_octopus_merge(repo):
    root, shas = repo
    model = GraphModel(root)
    await model.refresh()

    sections = await model.folded_sections(shas["M2"])
    expanded = [c.sha for c in await model.expand(shas["M2"])]

    assert [s.parent_sha for s in sections] == [shas["b1"], shas["c1"], shas["d1"]]
    # c1 and d1 both grew out of a2, which M1 already brought in
    assert [c.sha for c in sections[0].commits] == [shas["b1"]]
    assert [c.sha for c in sections[1].commits] == [shas["c1"]]
    assert [c.sha for c in sections[2].commits] == [shas["d1"]]
    assert expanded == [shas["b1"], shas["c1"], shas["d1"]]


@pytest.mark.asyncio
async def test_unfold_plain_commit_is_empty(repo):
    root, shas = repo
    model = GraphModel(root)
    await model.refresh()
    assert await model.expand(shas["main1"]) == []


@pytest.mark.asyncio
async def test_refresh_outside_repository_fails(tmp_path, monkeypatch):
    from src.history.errors import ExecutionError

    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))
    model = GraphModel(tmp_path)
    with pytest.raises(ExecutionError):
        await model.refresh()
    assert model.state == GraphState.FAILED
    assert model.top_level() == ()


@pytest.mark.asyncio
async def test_linked_worktree(repo, tmp_path_factory):
    root, shas = repo
    checkout = tmp_path_factory.mktemp("wt") / "checkout"
    git(root, "worktree", "add", "-q", "-b", "wtb", str(checkout), shas["M1"])

    git_dir = resolve_git_dir(checkout)
    assert resolve_head(git_dir) == shas["M1"]
    shared_ref = (root / ".git").resolve() / "refs" / "heads" / "wtb"
    assert is_reference_path(reference_roots(git_dir)[-1], shared_ref)

    model = GraphModel(checkout)
    snapshot = await model.refresh()
    assert [c.sha for c in snapshot] == [shas["M1"], shas["main1"], shas["base"]]
    assert [c.sha for c in await model.expand(shas["M1"])] == [shas["a1"], shas["a2"]]
