import asyncio
import hashlib
import shutil

import pytest

from src.history.log_reader import serialize_log
from src.history.models import CommitRecord

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def sha_of(name: str) -> str:
    return hashlib.sha1(name.encode()).hexdigest()


def make_commit(name, parents=(), subject=None, author="Me", date="2024-01-01 12:00:00 +0000"):
    return CommitRecord(
        sha=sha_of(name),
        subject=subject if subject is not None else name,
        author=author,
        date=date,
        parents=[sha_of(p) for p in parents],
    )


class FakeGit:
    """Stands in for run_git, answering log and merge-base queries from tables.

    ``logs`` is keyed by "top" for the first-parent query and by the
    ``base..tip`` range otherwise; ``bases`` by the (a, b) pair. A value that
    is an exception is raised. ``gates`` holds events a query waits on.
    """

    def __init__(self):
        self.logs = {}
        self.bases = {}
        self.gates = {}
        self.calls = []

    def count(self, predicate):
        return sum(1 for args in self.calls if predicate(args))

    async def __call__(self, args, cwd):
        args = list(args)
        self.calls.append(args)
        if args[0] == "merge-base":
            key = (args[1], args[2])
            result = self.bases.get(key, "")
        elif "--first-parent" in args:
            key = "top"
            result = self.logs.get("top", [])
        else:
            key = args[-1]
            result = self.logs.get(key, [])

        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        # Let other tasks interleave like a real subprocess would
        await asyncio.sleep(0)

        if isinstance(result, Exception):
            raise result
        if isinstance(result, str):
            return result + "\n"
        return serialize_log(result)


@pytest.fixture
def fake_git():
    return FakeGit()
