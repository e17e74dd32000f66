# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SourceReference(BaseModel):
    """Where a problem was transcribed from, e.g. a competition and its edition."""

    source_id: int
    edition_id: int | None = None


def normalize_topics(topics: list[str]) -> list[str]:
    """Trim, drop blanks, de-duplicate and sort topic names."""
    return sorted({topic.strip() for topic in topics if topic and topic.strip()})


class Problem(BaseModel):
    """A stored problem generator and its metadata."""

    id: str
    owner_id: str
    code: str = ""
    name: str | None = None
    difficulty: Difficulty | None = None
    topics: list[str] = Field(default_factory=list)
    assets: list[str] = Field(default_factory=list)
    source: SourceReference | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("topics")
    @classmethod
    def clean_topics(cls, value: list[str]) -> list[str]:
        return normalize_topics(value)

    @property
    def display_name(self) -> str:
        return self.name or f"Problem #{self.id}"

    @property
    def has_code(self) -> bool:
        return bool(self.code)


class ProblemUpdate(BaseModel):
    """Partial metadata update. Fields left unset are not touched."""

    name: str | None = None
    difficulty: Difficulty | None = None
    topics: list[str] | None = None
    assets: list[str] | None = None
    source: SourceReference | None = None


class Source(BaseModel):
    """A catalog entry problems can cite, e.g. a competition. Names are unique."""

    id: int
    name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
