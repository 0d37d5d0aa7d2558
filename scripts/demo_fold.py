import asyncio
import sys
from pathlib import Path

from src.graph.model import GraphModel
from src.history.errors import ExecutionError
from src.history.refs import find_repository_root

async def show(repo_root: Path):
    model = GraphModel(repo_root)
    try:
        commits = await model.refresh()
    except ExecutionError as e:
        print(f"Failed to read git log: {e}")
        return

    print(f"Loaded {len(commits)} first-parent commits.\n")
    for commit in commits:
        marker = "M" if commit.is_merge else "*"
        print(f"{marker} {commit.short_sha} {commit.subject} ({commit.author}, {commit.date})")
        for section in await model.folded_sections(commit.sha):
            print(f"    via {section.parent_sha[:7]}:")
            for folded in section.commits:
                print(f"      - {folded.short_sha} {folded.subject}")

def main():
    start = Path(sys.argv[1]) if len(sys.argv) > 1 else Path.cwd()
    repo_root = find_repository_root(start)
    if repo_root is None:
        print("No .git directory found. Run this from inside a git repo.")
        return
    asyncio.run(show(repo_root))

if __name__ == "__main__":
    main()
