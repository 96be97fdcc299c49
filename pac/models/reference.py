"""Repository references — the branch, tag or commit a package is pinned to."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from pac.errors import FormatError

COMMIT_HASH_LENGTH = 40
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


class RefKind(Enum):
    """How the reference value is interpreted."""

    BRANCH = "branch"
    TAG = "tag"
    COMMIT = "commit"


@dataclass(frozen=True)
class Reference:
    """A desired revision: ``{kind, value}``.

    Branches and tags map to ``refs/heads/<value>`` and ``refs/tags/<value>``.
    A commit value is a full SHA-1 used directly as an object id.
    """

    kind: RefKind
    value: str

    def __post_init__(self):
        if not self.value:
            raise FormatError(f"Empty {self.kind.value} reference")
        if self.kind == RefKind.COMMIT:
            validate_commit_hash(self.value)

    @classmethod
    def branch(cls, name: str) -> "Reference":
        return cls(RefKind.BRANCH, name)

    @classmethod
    def tag(cls, name: str) -> "Reference":
        return cls(RefKind.TAG, name)

    @classmethod
    def commit(cls, sha: str) -> "Reference":
        return cls(RefKind.COMMIT, sha.lower())

    @property
    def is_commit(self) -> bool:
        return self.kind == RefKind.COMMIT

    @property
    def refname(self) -> str:
        """Protocol-level address: a full ref path, or the bare hash for commits."""
        if self.kind == RefKind.BRANCH:
            return f"refs/heads/{self.value}"
        if self.kind == RefKind.TAG:
            return f"refs/tags/{self.value}"
        return self.value

    def to_dict(self) -> dict[str, str]:
        return {self.kind.value: self.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Reference | None":
        """Build a reference from a mapping holding at most one of branch/tag/commit."""
        found = [kind for kind in RefKind if data.get(kind.value)]
        if not found:
            return None
        if len(found) > 1:
            raise FormatError(
                "Only one of branch, tag or commit may be given, got "
                + ", ".join(k.value for k in found)
            )
        kind = found[0]
        value = str(data[kind.value])
        return cls.commit(value) if kind == RefKind.COMMIT else cls(kind, value)

    def __str__(self) -> str:
        return f"{self.kind.value} {self.value}"


def validate_commit_hash(value: str) -> str:
    """Return *value* if it is a full 40-character hex SHA-1, else raise FormatError."""
    if len(value) != COMMIT_HASH_LENGTH:
        raise FormatError(
            f"Invalid commit hash length ({len(value)}), please provide the full hash"
        )
    if not _HEX_RE.match(value):
        raise FormatError(f"Invalid commit hash: {value}")
    return value
