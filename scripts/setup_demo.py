import os
import shutil
import subprocess
from pathlib import Path

ENV = {
    "GIT_AUTHOR_NAME": "User",
    "GIT_AUTHOR_EMAIL": "user@example.com",
    "GIT_COMMITTER_NAME": "User",
    "GIT_COMMITTER_EMAIL": "user@example.com",
}

def git(repo_dir, *args):
    result = subprocess.run(
        ["git", *args],
        cwd=repo_dir,
        capture_output=True,
        text=True,
        env={**os.environ, **ENV},
    )
    if result.returncode != 0:
        raise RuntimeError(f"Failed to run git command: {args}\n{result.stderr}")
    return result.stdout.strip()

def commit(repo_dir, name, message):
    (repo_dir / name).write_text(message + "\n")
    git(repo_dir, "add", name)
    git(repo_dir, "commit", "-q", "-m", message)
    return git(repo_dir, "rev-parse", "HEAD")

def main():
    repo_dir = Path("demo_repo")
    if repo_dir.exists():
        shutil.rmtree(repo_dir)
    repo_dir.mkdir()

    print(f"Creating demo repo in {repo_dir}...")
    git(repo_dir, "init", "-q", "-b", "main")
    commit(repo_dir, "readme.txt", "Initial commit")

    # feature-a: two commits merged with --no-ff
    git(repo_dir, "checkout", "-q", "-b", "feature-a")
    commit(repo_dir, "a1.txt", "Add a1")
    commit(repo_dir, "a2.txt", "Add a2")
    git(repo_dir, "checkout", "-q", "main")
    commit(repo_dir, "main1.txt", "Main work")
    git(repo_dir, "merge", "-q", "--no-ff", "-m", "Merge feature-a", "feature-a")

    # Octopus: two more branches merged at once
    git(repo_dir, "checkout", "-q", "-b", "feature-b", "main~1")
    commit(repo_dir, "b1.txt", "Add b1")
    git(repo_dir, "checkout", "-q", "-b", "feature-c", "main")
    commit(repo_dir, "c1.txt", "Add c1")
    git(repo_dir, "checkout", "-q", "main")
    git(repo_dir, "merge", "-q", "--no-ff", "-m", "Merge feature-b and feature-c", "feature-b", "feature-c")

    print("\nRepo created. Run scripts/demo_fold.py demo_repo to view it.")

if __name__ == "__main__":
    main()
