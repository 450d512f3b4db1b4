"""Canna log entry data models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Tuple

__all__ = [
    "CannaStage",
    "Entry",
    "utcnow",
]


def utcnow() -> datetime:
    """Return timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


class CannaStage(str, Enum):
    """Growth stage a log entry is tagged with, in pager order."""

    SEED = "SEED"
    VEGETATIVE = "VEGETATIVE"
    FLOWERING = "FLOWERING"
    HARVEST = "HARVEST"
    CURING = "CURING"

    @classmethod
    def first(cls) -> "CannaStage":
        return next(iter(cls))

    @classmethod
    def from_page(cls, page: int) -> "CannaStage":
        """Map a pager index onto a stage, wrapping in both directions."""

        stages = list(cls)
        return stages[page % len(stages)]

    @classmethod
    def parse(cls, value: "str | CannaStage") -> "CannaStage":
        if isinstance(value, CannaStage):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise ValueError(f"Unknown canna stage: {value!r}") from exc

    @property
    def page_index(self) -> int:
        return list(type(self)).index(self)

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def next(self) -> "CannaStage":
        return type(self).from_page(self.page_index + 1)

    def previous(self) -> "CannaStage":
        return type(self).from_page(self.page_index - 1)


@dataclass(frozen=True)
class Entry:
    """A single log record owned by one identity."""

    entry_id: Optional[str]
    owner_id: str
    title: str
    description: str
    stage: CannaStage
    timestamp: datetime
    images: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def new(
        cls,
        *,
        owner_id: str = "",
        title: str = "",
        description: str = "",
        stage: "CannaStage | str | None" = None,
        timestamp: Optional[datetime] = None,
        images: Optional[Iterable[str]] = None,
        entry_id: Optional[str] = None,
    ) -> "Entry":
        """Factory for a draft with stage and timestamp defaults applied."""

        return cls(
            entry_id=entry_id,
            owner_id=owner_id,
            title=title or "",
            description=description or "",
            stage=CannaStage.parse(stage) if stage is not None else CannaStage.first(),
            timestamp=timestamp or utcnow(),
            images=tuple(images or ()),
        )

    @property
    def is_persisted(self) -> bool:
        return bool(self.entry_id)

    def with_title(self, title: str) -> "Entry":
        return replace(self, title=title or "")

    def with_description(self, description: str) -> "Entry":
        return replace(self, description=description or "")

    def with_timestamp(self, timestamp: datetime) -> "Entry":
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return replace(self, timestamp=timestamp)

    def with_stage(self, stage: "CannaStage | str") -> "Entry":
        return replace(self, stage=CannaStage.parse(stage))

    def with_owner(self, owner_id: str) -> "Entry":
        return replace(self, owner_id=owner_id)

    def with_entry_id(self, entry_id: str) -> "Entry":
        if self.entry_id and self.entry_id != entry_id:
            raise ValueError(
                f"Entry {self.entry_id} cannot be re-assigned id {entry_id}"
            )
        return replace(self, entry_id=entry_id)
