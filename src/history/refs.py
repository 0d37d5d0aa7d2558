from pathlib import Path
from typing import List, Optional, Union

PathLike = Union[str, Path]


def find_repository_root(start: PathLike) -> Optional[Path]:
    """Walks up from ``start`` to the first directory containing ``.git``."""
    current = Path(start).resolve()
    if current.is_file():
        current = current.parent
    for candidate in [current, *current.parents]:
        if (candidate / ".git").exists():
            return candidate
    return None


def resolve_git_dir(repo_root: PathLike) -> Path:
    """Returns the git directory, following a ``gitdir:`` pointer file."""
    dot_git = Path(repo_root) / ".git"
    if dot_git.is_file():
        content = dot_git.read_text().strip()
        if content.startswith("gitdir: "):
            target = Path(content[len("gitdir: "):])
            if not target.is_absolute():
                target = (Path(repo_root) / target).resolve()
            return target
    return dot_git


def resolve_common_dir(git_dir: PathLike) -> Path:
    """Directory holding shared refs; a linked worktree names it in ``commondir``."""
    git_dir = Path(git_dir)
    commondir = git_dir / "commondir"
    if not commondir.is_file():
        return git_dir
    target = Path(commondir.read_text().strip())
    if not target.is_absolute():
        target = git_dir / target
    return target.resolve()


def reference_roots(git_dir: PathLike) -> List[Path]:
    """The worktree git dir first, then the common dir when it differs."""
    git_dir = Path(git_dir)
    common_dir = resolve_common_dir(git_dir)
    if common_dir == git_dir:
        return [git_dir]
    return [git_dir, common_dir]


def is_reference_path(git_dir: PathLike, path: PathLike) -> bool:
    """True for HEAD, packed-refs and anything under refs/ (lock files excluded)."""
    git_dir = Path(git_dir)
    path = Path(path)
    if path.name.endswith(".lock"):
        return False
    try:
        rel = path.relative_to(git_dir)
    except ValueError:
        return False
    if not rel.parts:
        return False
    if rel.parts == ("HEAD",) or rel.parts == ("packed-refs",):
        return True
    return rel.parts[0] == "refs"


def _packed_ref(git_dir: Path, ref_path: str) -> Optional[str]:
    packed = git_dir / "packed-refs"
    if not packed.exists():
        return None
    for line in packed.read_text().splitlines():
        if not line or line.startswith("#") or line.startswith("^"):
            continue
        oid, _, name = line.partition(" ")
        if name == ref_path:
            return oid
    return None


def resolve_ref(git_dir: PathLike, ref_path: str) -> Optional[str]:
    """Resolves a reference (e.g., 'refs/heads/main') to an OID."""
    roots = reference_roots(git_dir)
    # Per-worktree refs (HEAD, refs/bisect) shadow the shared ones
    for root in roots:
        full_path = root / ref_path
        if not full_path.is_file():
            continue
        content = full_path.read_text().strip()
        if content.startswith("ref: "):
            # HEAD -> refs/heads/main
            return resolve_ref(git_dir, content[5:])
        return content or None
    return _packed_ref(roots[-1], ref_path)


def resolve_head(git_dir: PathLike) -> Optional[str]:
    """Resolves HEAD to the current commit OID."""
    return resolve_ref(git_dir, "HEAD")
