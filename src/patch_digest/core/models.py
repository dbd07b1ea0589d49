from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    """Направление изменений чемпиона."""

    IMPROVEMENT = "improvement"
    REDUCTION = "reduction"
    ADJUSTMENT = "adjustment"


@dataclass(frozen=True)
class ChangeRecord:
    """
    Изменения одной сущности (чемпиона или предмета) в порядке обнаружения.
    """

    name: str
    changes: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "changes": list(self.changes)}


def is_duplicate_line(existing: Iterable[str], line: str) -> bool:
    """
    Строка дублирует уже сохранённую, если одна является подстрокой другой.
    """
    for prev in existing:
        if prev in line or line in prev:
            return True
    return False


class ChangeCollector:
    """
    Накопитель записей во время извлечения.

    - одна запись на имя (без учёта регистра), списки изменений сливаются;
    - строка не добавляется, если она подстрока/надстрока уже имеющейся;
    - записи без изменений не сохраняются.
    """

    def __init__(self) -> None:
        self._names: Dict[str, str] = {}
        self._changes: Dict[str, List[str]] = {}

    def __len__(self) -> int:
        return len(self._changes)

    def __bool__(self) -> bool:
        return bool(self._changes)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._changes

    def names(self) -> List[str]:
        return [self._names[key] for key in self._changes]

    def add(self, name: str, lines: Iterable[str]) -> int:
        """
        Сливает строки в запись name. Возвращает число реально добавленных строк.
        """
        fresh = [line for line in lines if line]
        key = name.lower()
        if key not in self._changes:
            if not fresh:
                return 0
            self._names[key] = name
            self._changes[key] = []
        bucket = self._changes[key]
        added = 0
        for line in fresh:
            if is_duplicate_line(bucket, line):
                continue
            bucket.append(line)
            added += 1
        return added

    def records(self) -> List[ChangeRecord]:
        return [
            ChangeRecord(name=self._names[key], changes=tuple(lines))
            for key, lines in self._changes.items()
            if lines
        ]


@dataclass(frozen=True)
class PatchContent:
    """Structured summary of one patch notes page."""

    version: str
    title: str
    url: Optional[str] = None
    overview: Optional[str] = None
    character_changes: Tuple[ChangeRecord, ...] = field(default_factory=tuple)
    item_changes: Tuple[ChangeRecord, ...] = field(default_factory=tuple)
    system_changes: Tuple[str, ...] = field(default_factory=tuple)
    bug_fixes: Tuple[str, ...] = field(default_factory=tuple)

    def has_content(self) -> bool:
        return bool(
            self.character_changes
            or self.item_changes
            or self.bug_fixes
            or (self.overview and self.overview.strip())
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "title": self.title,
            "url": self.url,
            "overview": self.overview,
            "character_changes": [r.to_dict() for r in self.character_changes],
            "item_changes": [r.to_dict() for r in self.item_changes],
            "system_changes": list(self.system_changes),
            "bug_fixes": list(self.bug_fixes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchContent":
        def _records(rows: Any) -> Tuple[ChangeRecord, ...]:
            return tuple(
                ChangeRecord(name=str(r.get("name", "")), changes=tuple(r.get("changes") or ()))
                for r in rows or ()
            )

        return cls(
            version=str(data.get("version", "")),
            title=str(data.get("title", "")),
            url=data.get("url"),
            overview=data.get("overview"),
            character_changes=_records(data.get("character_changes")),
            item_changes=_records(data.get("item_changes")),
            system_changes=tuple(data.get("system_changes") or ()),
            bug_fixes=tuple(data.get("bug_fixes") or ()),
        )


def first_non_empty(
    strategies: Sequence[Tuple[str, Callable[..., List[ChangeRecord]]]],
    *args: Any,
) -> Tuple[Optional[str], List[ChangeRecord]]:
    """
    Запускает стратегии по порядку и возвращает (имя, результат) первой непустой.
    """
    for name, strategy in strategies:
        records = strategy(*args)
        if records:
            logger.debug("Strategy %s produced %d records", name, len(records))
            return name, records
        logger.debug("Strategy %s produced nothing", name)
    return None, []
