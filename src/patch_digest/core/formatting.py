"""
Plain-text rendering of extracted patches for chat and terminal output.

RU: Текстовое представление патча: краткая сводка, подробности по разделам
и нарезка длинных сообщений под лимит транспорта.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from .classifier import classify
from .lexicon import Lexicon
from .models import ChangeRecord, PatchContent, Verdict

MESSAGE_LIMIT = 2000

SECTIONS = ("champions", "items", "bugs", "system")

_RULE = "─" * 32
_DOUBLE_RULE = "═" * 32

_VERDICT_LABELS = {
    Verdict.IMPROVEMENT: ("📈", "BUFFS"),
    Verdict.REDUCTION: ("📉", "NERFS"),
    Verdict.ADJUSTMENT: ("⚖️", "ADJUSTMENTS"),
}

_ITEM_NAMES_IN_SUMMARY = 10


def group_by_verdict(
    records: Iterable[ChangeRecord],
    *,
    lexicon: Optional[Lexicon] = None,
) -> Dict[Verdict, List[ChangeRecord]]:
    """Раскладывает записи чемпионов по вердиктам, порядок внутри корзины сохраняется."""
    groups: Dict[Verdict, List[ChangeRecord]] = {v: [] for v in Verdict}
    for record in records:
        groups[classify(record, lexicon=lexicon)].append(record)
    return groups


def format_summary(content: PatchContent, *, lexicon: Optional[Lexicon] = None) -> str:
    lines: List[str] = [f"🎮 {content.title or f'Patch {content.version} Notes'}", _DOUBLE_RULE, ""]

    if content.character_changes:
        lines.append(f"⚔️ CHAMPION CHANGES ({len(content.character_changes)})")
        lines.append(_RULE)
        groups = group_by_verdict(content.character_changes, lexicon=lexicon)
        for verdict in Verdict:
            bucket = groups[verdict]
            if not bucket:
                continue
            icon, label = _VERDICT_LABELS[verdict]
            lines.append(f"{label}: " + ", ".join(f"{icon} {r.name}" for r in bucket))
        lines.append("")

    if content.item_changes:
        lines.append(f"🗡️ ITEM CHANGES ({len(content.item_changes)})")
        lines.append(_RULE)
        names = [f"• {r.name}" for r in content.item_changes[:_ITEM_NAMES_IN_SUMMARY]]
        extra = len(content.item_changes) - _ITEM_NAMES_IN_SUMMARY
        if extra > 0:
            names.append(f"• ... and {extra} more items")
        lines.append(", ".join(names))
        lines.append("")

    if content.bug_fixes:
        lines.append(f"🐛 BUG FIXES: {len(content.bug_fixes)} issues resolved")
    if content.system_changes:
        lines.append(f"🔧 SYSTEM CHANGES: {len(content.system_changes)} gameplay updates")

    if not content.has_content():
        lines.append("No structured changes were found on this page.")
        if content.url:
            lines.append(content.url)

    return "\n".join(lines).strip()


def _record_blocks(records: Sequence[ChangeRecord]) -> List[str]:
    blocks = []
    for record in records:
        body = [f"• {change}" for change in record.changes] or ["• No specific changes listed"]
        blocks.append("\n".join([record.name, _RULE, *body]))
    return blocks


def format_details(content: PatchContent, section: str) -> str:
    """
    Подробности по одному разделу: champions, items, bugs или system.
    """
    if section == "champions":
        header, blocks = "⚔️ DETAILED CHAMPION CHANGES", _record_blocks(content.character_changes)
        empty = "No champion changes found for this patch."
    elif section == "items":
        header, blocks = "🗡️ DETAILED ITEM CHANGES", _record_blocks(content.item_changes)
        empty = "No item changes found for this patch."
    elif section == "bugs":
        header, blocks = "🐛 DETAILED BUG FIXES", [f"• {fix}" for fix in content.bug_fixes]
        empty = "No bug fixes found for this patch."
    elif section == "system":
        header, blocks = "🔧 DETAILED SYSTEM CHANGES", [f"• {line}" for line in content.system_changes]
        empty = "No system changes found for this patch."
    else:
        raise ValueError(f"Unknown section: {section!r}")

    if not blocks:
        return empty
    return "\n\n".join([f"{header}\n{_DOUBLE_RULE}", *blocks])


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    """
    Режет текст по границам строк так, чтобы ни один кусок не превышал limit.
    Слишком длинные строки режутся жёстко.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")
    if len(text) <= limit:
        return [text] if text else []

    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return [chunk for chunk in chunks if chunk.strip()]
