import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Union

from src.history.errors import ParseError
from src.history.models import CommitRecord
from src.history.runner import Runner, run_git

logger = logging.getLogger(__name__)

FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"
WHITESPACE = " \t\r\n"

# sha, parents, subject, author name, author date
LOG_FORMAT = "%x1f".join(["%H", "%P", "%s", "%an", "%ad"]) + "%x1e"

MAX_TOP_LEVEL = 300


class LogMode(str, Enum):
    TOP_LEVEL = "top-level"
    ANCESTRY_PATH = "ancestry-path"


def build_log_args(
    mode: LogMode,
    max_count: int = MAX_TOP_LEVEL,
    rev_range: Optional[str] = None,
    date_format: str = "iso",
) -> List[str]:
    if mode == LogMode.TOP_LEVEL:
        return [
            "log",
            "--first-parent",
            f"--max-count={max_count}",
            f"--pretty=format:{LOG_FORMAT}",
            f"--date={date_format}",
        ]
    if not rev_range:
        raise ValueError("Ancestry-path log needs a <base>..<tip> range")
    return [
        "log",
        f"--pretty=format:{LOG_FORMAT}",
        "--topo-order",
        "--ancestry-path",
        "--reverse",
        f"--date={date_format}",
        rev_range,
    ]


def parse_record(record: str) -> CommitRecord:
    fields = record.split(FIELD_SEP)
    if len(fields) < 5:
        raise ParseError(f"Expected 5 fields, got {len(fields)}: {record!r}")

    sha, parents_field = fields[0].strip(), fields[1].strip()
    author, date = fields[-2], fields[-1]
    # Only the subject is free enough to carry a stray separator
    subject = FIELD_SEP.join(fields[2:-2])
    if not sha:
        raise ParseError(f"Record has an empty sha: {record!r}")

    parents = parents_field.split() if parents_field else []
    return CommitRecord(sha=sha, subject=subject, author=author, date=date, parents=parents)


def parse_log(raw: str) -> List[CommitRecord]:
    """Parse output produced with LOG_FORMAT, skipping malformed records."""
    commits = []
    for record in raw.split(RECORD_SEP):
        # str.strip() would also eat the 0x1C-0x1F separators
        record = record.strip(WHITESPACE)
        if not record:
            continue
        try:
            commits.append(parse_record(record))
        except ParseError as e:
            logger.warning("Skipping malformed log record: %s", e)
    return commits


def serialize_log(commits: Iterable[CommitRecord]) -> str:
    """Encode records the way ``git log --pretty=format:LOG_FORMAT`` prints them."""
    records = []
    for c in commits:
        fields = [c.sha, " ".join(c.parents), c.subject, c.author, c.date]
        records.append(FIELD_SEP.join(fields) + RECORD_SEP)
    # git separates format:-style entries with a newline
    return "\n".join(records)


async def read_log(
    repo_root: Union[str, Path],
    max_count: int = MAX_TOP_LEVEL,
    mode: LogMode = LogMode.TOP_LEVEL,
    rev_range: Optional[str] = None,
    date_format: str = "iso",
    runner: Runner = run_git,
) -> List[CommitRecord]:
    args = build_log_args(mode, max_count, rev_range, date_format)
    raw = await runner(args, repo_root)
    commits = parse_log(raw)
    logger.debug("Read %d commits (%s) from %s", len(commits), mode.value, repo_root)
    return commits


async def merge_base(
    repo_root: Union[str, Path], a: str, b: str, runner: Runner = run_git
) -> Optional[str]:
    """Best common ancestor of two commits, or None when git reports none."""
    out = await runner(["merge-base", a, b], repo_root)
    sha = out.strip()
    return sha or None

