import os
from dataclasses import dataclass, field
from pathlib import Path

from src.history.log_reader import MAX_TOP_LEVEL
from src.history.refs import find_repository_root
from src.history.runner import GIT_TIMEOUT


def _flag(value: str) -> bool:
    return value.strip().lower() not in ("", "0", "false", "no", "off")


@dataclass
class Settings:
    repo_root: Path
    max_count: int = MAX_TOP_LEVEL
    date_format: str = "iso"
    git_timeout: float = GIT_TIMEOUT
    watch_refs: bool = True
    coalesce_seconds: float = 0.25
    allowed_origins: list = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        # REPO_ROOT wins; otherwise look upwards from the working directory
        repo_env = os.getenv("REPO_ROOT")
        if repo_env:
            repo_root = Path(repo_env)
        else:
            repo_root = find_repository_root(Path.cwd()) or Path.cwd()

        # In production, set ALLOWED_ORIGINS to a comma-separated list of domains
        origins = os.getenv("ALLOWED_ORIGINS", "*")
        return cls(
            repo_root=repo_root.resolve(),
            max_count=int(os.getenv("MAX_COUNT", str(MAX_TOP_LEVEL))),
            date_format=os.getenv("DATE_FORMAT", "iso"),
            git_timeout=float(os.getenv("GIT_TIMEOUT", str(GIT_TIMEOUT))),
            watch_refs=_flag(os.getenv("WATCH_REFS", "1")),
            coalesce_seconds=float(os.getenv("REFRESH_COALESCE_SECONDS", "0.25")),
            allowed_origins=[o.strip() for o in origins.split(",")],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
