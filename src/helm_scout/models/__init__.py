"""Data models for helm-scout."""

from __future__ import annotations

import enum


class Confidence(enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SourceKind(enum.Enum):
    REPO_INDEX = "repo-index"
    REGISTRY = "registry"
    OVERRIDE = "override"
    UNRESOLVED = "unresolved"
