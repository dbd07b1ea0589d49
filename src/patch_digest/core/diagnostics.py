from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import PatchContent
from .text import preview


@dataclass
class ExtractionDiagnostics:
    """
    Snapshot of one extraction run: which strategies won and what was found.
    """

    version: str = ""
    url: Optional[str] = None
    champion_strategy: Optional[str] = None
    item_strategy: Optional[str] = None
    champion_count: int = 0
    item_count: int = 0
    bug_fix_count: int = 0
    system_change_count: int = 0
    duration_ms: Optional[float] = None
    timestamp_utc: str = ""
    champions: List[str] = field(default_factory=list)
    title_preview: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def record(
        self,
        content: PatchContent,
        *,
        champion_strategy: Optional[str],
        item_strategy: Optional[str],
        duration_ms: Optional[float],
    ) -> None:
        self.version = content.version
        self.url = content.url
        self.champion_strategy = champion_strategy
        self.item_strategy = item_strategy
        self.champion_count = len(content.character_changes)
        self.item_count = len(content.item_changes)
        self.bug_fix_count = len(content.bug_fixes)
        self.system_change_count = len(content.system_changes)
        self.duration_ms = duration_ms
        self.timestamp_utc = datetime.now(timezone.utc).isoformat()
        self.champions = [r.name for r in content.character_changes]
        self.title_preview = preview(content.title, 120)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "url": self.url,
            "champion_strategy": self.champion_strategy,
            "item_strategy": self.item_strategy,
            "champion_count": self.champion_count,
            "item_count": self.item_count,
            "bug_fix_count": self.bug_fix_count,
            "system_change_count": self.system_change_count,
            "duration_ms": self.duration_ms,
            "timestamp_utc": self.timestamp_utc,
            "champions": list(self.champions),
            "title_preview": self.title_preview,
            "extra": self.extra,
            "error": self.error,
        }


def write_extraction_log(diagnostics: ExtractionDiagnostics, directory: str | Path) -> Path:
    """
    Append diagnostics as JSONL into logs/extractions/YYYY-MM-DD.jsonl.
    """

    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc)
    log_path = out_dir / f"{ts:%Y-%m-%d}.jsonl"
    payload = diagnostics.to_dict()

    with log_path.open("a", encoding="utf-8") as fp:
        fp.write(json.dumps(payload, ensure_ascii=False) + "\n")

    return log_path
