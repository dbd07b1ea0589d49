"""
Champion change extraction.

RU: Извлечение изменений чемпионов. Три стратегии пробуются по очереди,
побеждает первая, нашедшая хоть что-то; затем проход дополнения
дочитывает строки характеристик вокруг каждого найденного имени.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Callable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from .config import DigestConfig
from .heuristics import (
    VALUE,
    descriptive_changes,
    extract_stat_lines,
    format_stat_change,
    is_entity_mode_content,
    is_out_of_domain,
)
from .lexicon import Lexicon
from .models import ChangeCollector, ChangeRecord, first_non_empty
from .sections import SectionHint, heading_topic_predicate, locate_sections, walk_section
from .text import ABILITY_SLOT, ARROW, HEADING_TAGS, NUMBER, clean_text, document_text, element_text

logger = logging.getLogger(__name__)

Strategy = Callable[[BeautifulSoup, Lexicon, DigestConfig], List[ChangeRecord]]

CHAMPION_HINTS: Tuple[SectionHint, ...] = (
    SectionHint.container("Champion", "section"),
    SectionHint.container("Champion", "div"),
    SectionHint.heading("Champion", "h2", "h3"),
    SectionHint.attribute("champion"),
)

SUB_HEADING_SELECTOR = "h3, h4, h5, .champion-name, [data-champion]"
_SUB_HEADING_TAGS = ("h3", "h4", "h5")

# Темы, на которых секция чемпионов заканчивается
_UNRELATED_TOPICS = (
    "item", "rune", "bug", "fix", "system", "arena", "aram",
    "upcoming", "related", "skin", "chroma", "mode",
)

_CONTEXT_TAGS = ["p", "div", "li", "td", "span"]

_CHANGE_VERBS = r"(?:increased|decreased|reduced|improved|lowered|raised|adjusted)"


def _lines_from_text(text: str, name: str, lexicon: Lexicon) -> List[str]:
    """Строки характеристик, а если их нет, то описательные предложения."""
    if is_entity_mode_content(name, text, lexicon):
        return []
    lines = extract_stat_lines(text, lexicon, name)
    if not lines:
        lines = descriptive_changes(text, name, lexicon)
    return lines


# =============================================================================
# structured_scan
# =============================================================================

def _is_champion_heading(el: Tag, lexicon: Lexicon) -> bool:
    if el.name not in _SUB_HEADING_TAGS and not el.has_attr("data-champion"):
        classes = el.get("class") or []
        if "champion-name" not in classes:
            return False
    return lexicon.champions.identify(element_text(el)) is not None


def _sub_headings(body: Sequence[Tag], lexicon: Lexicon) -> List[Tuple[str, Tag]]:
    found: List[Tuple[str, Tag]] = []
    seen = set()
    for el in body:
        candidates = [el] if (el.name in _SUB_HEADING_TAGS or el.has_attr("data-champion")) else []
        candidates.extend(el.select(SUB_HEADING_SELECTOR))
        for cand in candidates:
            if id(cand) in seen:
                continue
            seen.add(id(cand))
            label = cand.get("data-champion") or element_text(cand)
            name = lexicon.champions.identify(str(label))
            if name:
                found.append((name, cand))
    return found


def _heading_level(el: Tag) -> int:
    return HEADING_TAGS.index(el.name) + 1 if el.name in HEADING_TAGS else 0


def _ends_block(start: Tag, lexicon: Lexicon) -> Callable[[Tag], bool]:
    """Конец блока: заголовок того же уровня или выше либо следующий чемпион."""
    unrelated = heading_topic_predicate(_UNRELATED_TOPICS, levels=("h1", "h2", "h3"))
    level = _heading_level(start)

    def _stop(el: Tag) -> bool:
        if unrelated(el) or _is_champion_heading(el, lexicon):
            return True
        other = _heading_level(el)
        return bool(level and other and other <= level)

    return _stop


def _champion_block_text(heading: Tag, lexicon: Lexicon, limit: int) -> str:
    parts = [element_text(heading)]
    parts.extend(
        element_text(el)
        for el in walk_section(heading, _ends_block(heading, lexicon), max_elements=limit)
    )
    return "\n".join(p for p in parts if p)


def _section_body(section: Tag, lexicon: Lexicon, settings: DigestConfig) -> List[Tag]:
    if section.name in HEADING_TAGS:
        stop = heading_topic_predicate(_UNRELATED_TOPICS, levels=("h1", "h2", "h3"))
        level = _heading_level(section)

        def _is_new_topic(el: Tag) -> bool:
            other = _heading_level(el)
            return stop(el) or bool(other and other <= level and not _is_champion_heading(el, lexicon))

        walked = walk_section(section, _is_new_topic, max_elements=settings.section_walk_limit)
        return [section, *walked]
    return [section]


def structured_scan(doc: BeautifulSoup, lexicon: Lexicon, settings: DigestConfig) -> List[ChangeRecord]:
    """
    Секции «Champions»: подзаголовок на чемпиона, под ним строки изменений.
    Если подзаголовков нет, весь текст секции проверяется на каждое имя.
    """
    hint, sections = locate_sections(doc, CHAMPION_HINTS)
    if hint is None:
        return []
    logger.debug("Champion sections matched by %s: %d", hint.describe(), len(sections))

    collector = ChangeCollector()
    for section in sections:
        body = _section_body(section, lexicon, settings)
        headings = _sub_headings(body, lexicon)
        if headings:
            for name, heading in headings:
                text = _champion_block_text(heading, lexicon, settings.champion_block_limit)
                collector.add(name, _lines_from_text(text, name, lexicon))
            continue
        text = "\n".join(element_text(el) for el in body)
        for name in lexicon.champions.mentions(text):
            collector.add(name, _lines_from_text(_text_after(text, name, lexicon), name, lexicon))
    return collector.records()


@lru_cache(maxsize=8)
def _names_re(alternation: str) -> re.Pattern[str]:
    return re.compile(alternation)


def _text_after(text: str, name: str, lexicon: Lexicon) -> str:
    # текст секции от первого упоминания до следующего другого чемпиона
    start = None
    for m in _names_re(lexicon.champions.alternation).finditer(text):
        captured = lexicon.champions.normalize(m.group(0))
        if start is None:
            if captured == name:
                start = m.start()
            continue
        if captured != name:
            return text[start:m.start()]
    return text[start:] if start is not None else ""


# =============================================================================
# stat_pattern_scan
# =============================================================================

@lru_cache(maxsize=8)
def _stat_patterns(names: str) -> Tuple[re.Pattern[str], ...]:
    label = r"[A-Za-z][A-Za-z' ]{0,40}?"
    return (
        re.compile(
            rf"(?P<name>{names})\s+(?P<label>(?:Base\s+)?{label})\s*:?\s*"
            rf"(?P<old>{VALUE})\s*{ARROW}\s*(?P<new>{VALUE})",
            re.IGNORECASE,
        ),
        re.compile(
            rf"(?P<name>{names})\s+(?P<slot>(?-i:{ABILITY_SLOT}))\s*[-–—:]+\s*"
            rf"(?P<desc>[^→⇒➔⟶▶\n]{{0,60}}?)\s*"
            rf"(?P<old>{VALUE})\s*{ARROW}\s*(?P<new>{VALUE})",
            re.IGNORECASE,
        ),
        re.compile(
            rf"(?P<name>{names})\s+(?P<label>{label})\s*{_CHANGE_VERBS}\s+"
            rf"(?:from\s+)?(?P<old>{NUMBER}%?)\s*(?:to\s+)?(?P<new>{NUMBER}%?)",
            re.IGNORECASE,
        ),
    )


def _pattern_change(m: re.Match[str]) -> str:
    groups = m.groupdict()
    if groups.get("slot"):
        desc = clean_text(groups.get("desc") or "").rstrip(":-–— ")
        label = f"{groups['slot']} - {desc}" if desc and len(desc) < 50 else groups["slot"]
    else:
        label = clean_text(groups.get("label") or "")
    if label and groups.get("old") and groups.get("new"):
        return format_stat_change(label, groups["old"], groups["new"])
    return clean_text(m.group(0))


def stat_pattern_scan(doc: BeautifulSoup, lexicon: Lexicon, settings: DigestConfig) -> List[ChangeRecord]:
    """
    Шаблоны «имя + характеристика + было → стало» по тексту всего документа.
    Каждый шаблон даёт одну строку на имя; остальное дочитывает проход дополнения.
    """
    text = document_text(doc)
    collector = ChangeCollector()
    for pattern in _stat_patterns(lexicon.champions.alternation):
        seen = set()
        for m in pattern.finditer(text):
            if len(collector) >= settings.pattern_scan_limit:
                break
            name = lexicon.champions.normalize(m.group("name"))
            if not name or name in seen:
                continue
            change = _pattern_change(m)
            if is_out_of_domain(name, change, lexicon):
                continue
            seen.add(name)
            collector.add(name, [change])
    return collector.records()


# =============================================================================
# context_window_scan
# =============================================================================

def _window_text(el: Tag) -> str:
    parts = [element_text(el)]
    parent = el.parent
    if isinstance(parent, Tag) and parent.name not in ("body", "html", "[document]"):
        parts.append(element_text(parent))
        parts.extend(element_text(child) for child in parent.find_all(True, recursive=False))
    return "\n".join(dict.fromkeys(p for p in parts if p))


def _is_container(el: Tag) -> bool:
    # обёртки над другими блоками пропускаем: их текст покрывает всю страницу
    return el.name == "div" and el.find(["p", "div", "li", "td", "table", "ul", "ol"]) is not None


def context_window_scan(doc: BeautifulSoup, lexicon: Lexicon, settings: DigestConfig) -> List[ChangeRecord]:
    """
    Любой абзац/ячейка, где упомянут чемпион: смотрим сам элемент,
    его родителя и соседей по родителю.
    """
    collector = ChangeCollector()
    for el in doc.find_all(_CONTEXT_TAGS):
        if len(collector) >= settings.context_scan_limit:
            break
        if _is_container(el):
            continue
        text = element_text(el)
        if len(text) < settings.context_min_chars:
            continue
        names = lexicon.champions.mentions(text)
        if not names:
            continue
        window = _window_text(el)
        for name in names:
            collector.add(name, _lines_from_text(_text_after(window, name, lexicon), name, lexicon))
            if len(collector) >= settings.context_scan_limit:
                break
    return collector.records()


# =============================================================================
# enhancement pass
# =============================================================================

_SENTENCE_END_RE = re.compile(r"[.!?](?=\s|$)|\n")


def _cut_at_next_entity(window: str, name: str, lexicon: Lexicon) -> str:
    # окно заканчивается на другом чемпионе или любом предмете
    entities = _names_re(f"{lexicon.champions.alternation}|{lexicon.items.alternation}")
    for m in entities.finditer(window):
        if lexicon.champions.normalize(m.group(0)) != name:
            return window[: m.start()]
    return window


def enhance_records(
    records: Sequence[ChangeRecord],
    doc: BeautifulSoup,
    lexicon: Lexicon,
    settings: DigestConfig,
) -> List[ChangeRecord]:
    """
    Дочитывает до window символов после каждого упоминания имени
    (до конца предложения или до следующей сущности) и добавляет новые строки характеристик.
    Уже имеющаяся строка выигрывает у похожей новой.
    """
    if not records:
        return []
    text = document_text(doc)
    collector = ChangeCollector()
    for record in records:
        collector.add(record.name, record.changes)

    added = 0
    for record in records:
        for m in lexicon.champions.finditer(text, record.name):
            window = text[m.end(): m.end() + settings.enhancement_window_chars]
            cut = _SENTENCE_END_RE.search(window)
            if cut:
                window = window[: cut.start()]
            window = _cut_at_next_entity(window, record.name, lexicon)
            if not window.strip():
                continue
            added += collector.add(record.name, extract_stat_lines(window, lexicon, record.name))
    if added:
        logger.debug("Enhancement pass added %d stat lines", added)
    return collector.records()


CHARACTER_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("structured_scan", structured_scan),
    ("stat_pattern_scan", stat_pattern_scan),
    ("context_window_scan", context_window_scan),
)


def extract_character_changes(
    doc: BeautifulSoup,
    lexicon: Lexicon,
    settings: DigestConfig,
) -> Tuple[Optional[str], Tuple[ChangeRecord, ...]]:
    """
    Returns (winning strategy, records).

    RU: Возвращает имя сработавшей стратегии и записи чемпионов.
    """
    strategy, records = first_non_empty(CHARACTER_STRATEGIES, doc, lexicon, settings)
    records = enhance_records(records, doc, lexicon, settings)
    logger.info("Champion changes: %d (strategy=%s)", len(records), strategy or "none")
    for record in records:
        logger.debug("  %s: %d lines", record.name, len(record.changes))
    return strategy, tuple(records)
