"""Outcome records returned by the patcher and the HTML renderer."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from docx_templater.model.placeholder import PlaceholderToken


class PatchStage(str, Enum):
    """Ordered stages a package goes through during one patch operation."""

    OPENED = "opened"
    BODY_EXTRACTED = "body_extracted"
    REPAIRED = "repaired"
    SUBSTITUTED = "substituted"
    SERIALIZED = "serialized"


class IssueKind(str, Enum):
    """Per-placeholder problems that degrade output without aborting it."""

    UNRESOLVED = "unresolved"
    IMAGE_ERROR = "image_error"
    UNRECOGNIZED_TYPE = "unrecognized_type"
    INVALID_VALUE = "invalid_value"


@dataclass(slots=True)
class PatchIssue:
    """A degradation recorded for one placeholder occurrence."""

    name: str
    kind: IssueKind
    message: str = ""
    part: str = ""


@dataclass(slots=True)
class SubstitutionResult:
    """Substituted flat text together with the issues met on the way."""

    text: str
    tokens: List[PlaceholderToken] = field(default_factory=list)
    issues: List[PatchIssue] = field(default_factory=list)


@dataclass(slots=True)
class PatchResult:
    """Patched package bytes ready for a downstream PDF renderer."""

    content: bytes
    stage: PatchStage
    tokens: List[PlaceholderToken] = field(default_factory=list)
    issues: List[PatchIssue] = field(default_factory=list)

    def issues_of(self, kind: IssueKind) -> List[PatchIssue]:
        return [issue for issue in self.issues if issue.kind is kind]
