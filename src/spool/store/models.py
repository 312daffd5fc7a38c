"""Data models for the spool event log and its derived views."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

SCHEMA_VERSION = 1

_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_ts(value: str) -> datetime:
    """Parse an RFC 3339 timestamp and normalize it to UTC.

    An explicit offset is required. Fractional seconds beyond microsecond
    precision are truncated.
    """
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    m = _RFC3339.match(value)
    if not m:
        raise ValueError(f"not an RFC 3339 timestamp: {value!r}")
    date_part, time_part, frac, offset = m.groups()
    if offset in ("Z", "z"):
        offset = "+00:00"
    text = f"{date_part}T{time_part}"
    if frac:
        text += "." + frac[:6].ljust(6, "0")
    return datetime.fromisoformat(text + offset).astimezone(timezone.utc)


def format_ts(value: datetime) -> str:
    """Format a datetime as RFC 3339 in UTC with a Z suffix."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Operation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    ASSIGN = "assign"
    COMMENT = "comment"
    LINK = "link"
    UNLINK = "unlink"
    COMPLETE = "complete"
    REOPEN = "reopen"
    ARCHIVE = "archive"

    def __str__(self) -> str:
        return self.value


class TaskStatus(str, Enum):
    OPEN = "open"
    COMPLETE = "complete"

    def __str__(self) -> str:
        return self.value


# ── Payloads ──────────────────────────────────────────────────────────────────
#
# Each operation carries its own payload shape. Decoding is permissive:
# missing or wrong-typed fields fall back to their defaults.


def _str(d: dict, key: str) -> str | None:
    value = d.get(key)
    return value if isinstance(value, str) else None


def _str_list(d: dict, key: str) -> list[str] | None:
    value = d.get(key)
    if not isinstance(value, list):
        return None
    return [v for v in value if isinstance(v, str)]


@dataclass
class CreatePayload:
    title: str = ""
    description: str | None = None
    priority: str | None = None
    tags: list[str] = field(default_factory=list)
    assignee: str | None = None
    parent: str | None = None
    blocks: list[str] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> "CreatePayload":
        return cls(
            title=_str(d, "title") or "",
            description=_str(d, "description"),
            priority=_str(d, "priority"),
            tags=_str_list(d, "tags") or [],
            assignee=_str(d, "assignee"),
            parent=_str(d, "parent"),
            blocks=_str_list(d, "blocks") or [],
            blocked_by=_str_list(d, "blocked_by") or [],
        )


@dataclass
class UpdatePayload:
    """Only fields present (and well-typed) in the event are set."""

    title: str | None = None
    description: str | None = None
    priority: str | None = None
    tags: list[str] | None = None

    @classmethod
    def from_dict(cls, d: dict) -> "UpdatePayload":
        return cls(
            title=_str(d, "title"),
            description=_str(d, "description"),
            priority=_str(d, "priority"),
            tags=_str_list(d, "tags"),
        )


@dataclass
class AssignPayload:
    to: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> "AssignPayload":
        return cls(to=_str(d, "to"))


@dataclass
class CommentPayload:
    body: str = ""
    ref: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> "CommentPayload":
        return cls(body=_str(d, "body") or "", ref=_str(d, "ref"))


@dataclass
class LinkPayload:
    """Used by both link and unlink."""

    rel: str | None = None
    target: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> "LinkPayload":
        return cls(rel=_str(d, "rel"), target=_str(d, "target"))


@dataclass
class CompletePayload:
    resolution: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> "CompletePayload":
        return cls(resolution=_str(d, "resolution"))


@dataclass
class ReopenPayload:
    @classmethod
    def from_dict(cls, d: dict) -> "ReopenPayload":
        return cls()


@dataclass
class ArchivePayload:
    ref: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> "ArchivePayload":
        return cls(ref=_str(d, "ref"))


PAYLOAD_TYPES = {
    Operation.CREATE: CreatePayload,
    Operation.UPDATE: UpdatePayload,
    Operation.ASSIGN: AssignPayload,
    Operation.COMMENT: CommentPayload,
    Operation.LINK: LinkPayload,
    Operation.UNLINK: LinkPayload,
    Operation.COMPLETE: CompletePayload,
    Operation.REOPEN: ReopenPayload,
    Operation.ARCHIVE: ArchivePayload,
}


# ── Events ────────────────────────────────────────────────────────────────────

EVENT_FIELDS = ("v", "op", "id", "ts", "by", "branch", "d")


@dataclass(frozen=True)
class Event:
    """One line of an event log. Never mutated once written."""

    schema_version: int
    operation: Operation
    task_id: str
    timestamp: datetime
    actor: str
    origin_branch: str
    data: Any = field(default_factory=dict)
    # Raw log line, kept so archiving copies events byte for byte.
    source_line: str | None = field(default=None, compare=False, repr=False)

    @property
    def payload(self):
        """The operation-specific payload decoded from the raw document."""
        raw = self.data if isinstance(self.data, dict) else {}
        return PAYLOAD_TYPES[self.operation].from_dict(raw)

    @classmethod
    def from_dict(cls, raw: Any) -> "Event":
        """Build an event from decoded JSON. Raises ValueError on a bad shape."""
        if not isinstance(raw, dict):
            raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
        for key in EVENT_FIELDS:
            if key not in raw:
                raise ValueError(f"missing field `{key}`")

        v = raw["v"]
        if isinstance(v, bool) or not isinstance(v, int) or v < 0:
            raise ValueError(f"invalid schema version: {v!r}")
        try:
            op = Operation(raw["op"])
        except ValueError:
            raise ValueError(f"unknown operation: {raw['op']!r}") from None
        for key in ("id", "by", "branch"):
            if not isinstance(raw[key], str):
                raise ValueError(f"field `{key}` must be a string")

        return cls(
            schema_version=v,
            operation=op,
            task_id=raw["id"],
            timestamp=parse_ts(raw["ts"]),
            actor=raw["by"],
            origin_branch=raw["branch"],
            data=raw["d"],
        )

    def to_dict(self) -> dict:
        return {
            "v": self.schema_version,
            "op": self.operation.value,
            "id": self.task_id,
            "ts": format_ts(self.timestamp),
            "by": self.actor,
            "branch": self.origin_branch,
            "d": self.data,
        }


# ── Derived state ─────────────────────────────────────────────────────────────


@dataclass
class Comment:
    timestamp: datetime
    actor: str
    body: str
    ref: str | None = None

    def to_dict(self) -> dict:
        d = {"ts": format_ts(self.timestamp), "by": self.actor, "body": self.body}
        if self.ref is not None:
            d["ref"] = self.ref
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Comment":
        return cls(
            timestamp=parse_ts(d["ts"]),
            actor=d["by"],
            body=d["body"],
            ref=d.get("ref"),
        )


@dataclass
class Task:
    id: str
    title: str
    created: datetime
    created_by: str
    created_branch: str
    updated: datetime
    status: TaskStatus = TaskStatus.OPEN
    description: str | None = None
    priority: str | None = None
    tags: list[str] = field(default_factory=list)
    assignee: str | None = None
    completed: datetime | None = None
    resolution: str | None = None
    parent: str | None = None
    blocks: list[str] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    archived: str | None = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.description is not None:
            d["description"] = self.description
        d["status"] = self.status.value
        if self.priority is not None:
            d["priority"] = self.priority
        d["tags"] = list(self.tags)
        if self.assignee is not None:
            d["assignee"] = self.assignee
        d["created"] = format_ts(self.created)
        d["created_by"] = self.created_by
        d["created_branch"] = self.created_branch
        d["updated"] = format_ts(self.updated)
        if self.completed is not None:
            d["completed"] = format_ts(self.completed)
        if self.resolution is not None:
            d["resolution"] = self.resolution
        if self.parent is not None:
            d["parent"] = self.parent
        d["blocks"] = list(self.blocks)
        d["blocked_by"] = list(self.blocked_by)
        d["comments"] = [c.to_dict() for c in self.comments]
        if self.archived is not None:
            d["archived"] = self.archived
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Task":
        return cls(
            id=d["id"],
            title=d["title"],
            description=d.get("description"),
            status=TaskStatus(d["status"]),
            priority=d.get("priority"),
            tags=list(d.get("tags", [])),
            assignee=d.get("assignee"),
            created=parse_ts(d["created"]),
            created_by=d["created_by"],
            created_branch=d["created_branch"],
            updated=parse_ts(d["updated"]),
            completed=parse_ts(d["completed"]) if d.get("completed") else None,
            resolution=d.get("resolution"),
            parent=d.get("parent"),
            blocks=list(d.get("blocks", [])),
            blocked_by=list(d.get("blocked_by", [])),
            comments=[Comment.from_dict(c) for c in d.get("comments", [])],
            archived=d.get("archived"),
        )


@dataclass
class State:
    tasks: dict[str, Task] = field(default_factory=dict)
    rebuilt_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "tasks": {tid: self.tasks[tid].to_dict() for tid in sorted(self.tasks)},
            "rebuilt": format_ts(self.rebuilt_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "State":
        return cls(
            tasks={tid: Task.from_dict(t) for tid, t in d.get("tasks", {}).items()},
            rebuilt_at=parse_ts(d["rebuilt"]),
        )


@dataclass
class TaskIndex:
    """Compact per-task summary. Dates are YYYY-MM-DD strings."""

    status: TaskStatus
    created: str
    updated: str
    completed: str | None = None
    contributing_files: list[str] = field(default_factory=list)
    archived: str | None = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "status": self.status.value,
            "created": self.created,
            "updated": self.updated,
        }
        if self.completed is not None:
            d["completed"] = self.completed
        d["files"] = list(self.contributing_files)
        if self.archived is not None:
            d["archived"] = self.archived
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "TaskIndex":
        return cls(
            status=TaskStatus(d["status"]),
            created=d["created"],
            updated=d["updated"],
            completed=d.get("completed"),
            contributing_files=list(d.get("files", [])),
            archived=d.get("archived"),
        )


@dataclass
class Index:
    tasks: dict[str, TaskIndex] = field(default_factory=dict)
    rebuilt_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "tasks": {tid: self.tasks[tid].to_dict() for tid in sorted(self.tasks)},
            "rebuilt": format_ts(self.rebuilt_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Index":
        return cls(
            tasks={tid: TaskIndex.from_dict(t) for tid, t in d.get("tasks", {}).items()},
            rebuilt_at=parse_ts(d["rebuilt"]),
        )


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.warnings
