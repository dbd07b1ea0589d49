"""
Item change extraction.

RU: Извлечение изменений предметов: секция «Items», ссылки на предметы
по всему документу, затем поиск известных названий.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .config import DigestConfig
from .lexicon import Lexicon
from .models import ChangeCollector, ChangeRecord, first_non_empty
from .sections import SectionHint, find_hint_matches, heading_topic_predicate, walk_section
from .text import ARROW_PAIR_RE, HEADING_TAGS, element_text, elements_containing_text

logger = logging.getLogger(__name__)

ItemStrategy = Callable[[BeautifulSoup, Lexicon, DigestConfig], List[ChangeRecord]]

ITEM_HINTS: Tuple[SectionHint, ...] = (
    SectionHint.heading("Items", "h2", "h3"),
    SectionHint.heading("Item", "h2", "h3"),
    SectionHint.attribute("item"),
)

ITEM_LINK_SELECTOR = "a[href*='item'], a[href*='how-to-play']"
DOCUMENT_LINK_SELECTOR = "a[href*='item'], a[href*='how-to-play'], a[title*='item']"

# Заголовки, после которых секция предметов закончилась
_MAJOR_TOPICS = (
    "champion", "rune", "bugfix", "bug fix", "arena", "aram",
    "upcoming", "related", "system",
)

_STAT_COLON_RE = re.compile(
    r"(?:damage|health|mana|armor|magic resist|ability haste|attack speed|cost|cooldown|gold)\s*:",
    re.IGNORECASE,
)
_FROM_TO_RE = re.compile(r"from\s+\d+(?:\.\d+)?%?\s+to\s+\d+(?:\.\d+)?", re.IGNORECASE)

_SIBLINGS_AFTER = 3


def is_item_change_text(text: str, lexicon: Lexicon) -> bool:
    """
    Строка похожа на изменение предмета: стрелка, «характеристика:»,
    «from X to Y», лексика баффа/нерфа или словарь предметов.
    """
    if not text or len(text) <= 10:
        return False
    if ARROW_PAIR_RE.search(text) or _STAT_COLON_RE.search(text) or _FROM_TO_RE.search(text):
        return True
    lower = text.lower()
    if any(term in lower for term in lexicon.change_vocabulary):
        return True
    return any(term in lower for term in lexicon.item_vocabulary)


def _texts(el: Tag) -> List[str]:
    # списки разбираем по пунктам, остальное целиком
    if el.name in ("ul", "ol"):
        return [element_text(li) for li in el.find_all("li")]
    return [element_text(el)]


def _candidate_elements(el: Tag) -> Iterable[Tag]:
    yield el
    parent = el.parent
    if isinstance(parent, Tag):
        yield from parent.find_all(True, recursive=False)
    sibling = el.find_next_sibling()
    count = 0
    while sibling is not None and count < _SIBLINGS_AFTER:
        yield sibling
        count += 1
        sibling = sibling.find_next_sibling()


def changes_near(el: Tag, lexicon: Lexicon) -> List[str]:
    """Строки изменений из элемента, детей его родителя и трёх следующих соседей."""
    lines: List[str] = []
    for cand in _candidate_elements(el):
        for text in _texts(cand):
            if text not in lines and is_item_change_text(text, lexicon):
                lines.append(text)
    return lines


def _item_from_link(link: Tag, lexicon: Lexicon) -> Optional[str]:
    text = element_text(link)
    if len(text) <= 2:
        return None
    return lexicon.items.normalize(text) or lexicon.items.identify(text)


def _block_after(heading: Tag, lexicon: Lexicon, limit: int) -> List[str]:
    level = HEADING_TAGS.index(heading.name) + 1 if heading.name in HEADING_TAGS else 0

    def _stop(el: Tag) -> bool:
        if el.name in HEADING_TAGS:
            other = HEADING_TAGS.index(el.name) + 1
            if other <= level or lexicon.items.identify(element_text(el)):
                return True
        return False

    lines: List[str] = []
    for el in walk_section(heading, _stop, max_elements=limit):
        for text in _texts(el):
            if text not in lines and is_item_change_text(text, lexicon):
                lines.append(text)
    return lines


def section_scan(doc: BeautifulSoup, lexicon: Lexicon, settings: DigestConfig) -> List[ChangeRecord]:
    """
    Секция «Items»: подзаголовки с названиями предметов и ссылки на предметы
    внутри пройденных элементов.
    """
    is_new_topic = heading_topic_predicate(_MAJOR_TOPICS, levels=("h1", "h2"))
    for hint in ITEM_HINTS:
        matches = find_hint_matches(doc, hint)
        if not matches:
            continue
        section = matches[0]
        collector = ChangeCollector()
        if section.name in HEADING_TAGS:
            body = list(walk_section(section, is_new_topic, max_elements=settings.item_walk_limit))
        else:
            body = [section]
        for el in body:
            if el.name in ("h3", "h4", "h5"):
                name = lexicon.items.identify(element_text(el))
                if name:
                    collector.add(name, _block_after(el, lexicon, settings.champion_block_limit))
            for link in el.select(ITEM_LINK_SELECTOR):
                name = _item_from_link(link, lexicon)
                if name:
                    collector.add(name, changes_near(link.parent or link, lexicon))
        if collector:
            logger.debug("Item section matched by %s", hint.describe())
            return collector.records()
    return []


def link_scan(doc: BeautifulSoup, lexicon: Lexicon, settings: DigestConfig) -> List[ChangeRecord]:
    """Ссылки на предметы в любом месте документа."""
    collector = ChangeCollector()
    for link in doc.select(DOCUMENT_LINK_SELECTOR):
        name = _item_from_link(link, lexicon)
        if not name:
            continue
        anchor = link.parent if isinstance(link.parent, Tag) else link
        collector.add(name, changes_near(anchor, lexicon))
    return collector.records()


def known_name_scan(doc: BeautifulSoup, lexicon: Lexicon, settings: DigestConfig) -> List[ChangeRecord]:
    """Известные названия предметов, найденные где угодно в тексте."""
    collector = ChangeCollector()
    for name in lexicon.items:
        for el in elements_containing_text(doc, name, innermost_blocks=True):
            if not lexicon.items.contains(element_text(el), name):
                continue
            lines = changes_near(el, lexicon)
            if lines:
                collector.add(name, lines)
                break
    return collector.records()


ITEM_STRATEGIES: Tuple[Tuple[str, ItemStrategy], ...] = (
    ("section_scan", section_scan),
    ("link_scan", link_scan),
    ("known_name_scan", known_name_scan),
)


def extract_item_changes(
    doc: BeautifulSoup,
    lexicon: Lexicon,
    settings: DigestConfig,
) -> Tuple[Optional[str], Tuple[ChangeRecord, ...]]:
    """Returns (winning strategy, item records)."""
    strategy, records = first_non_empty(ITEM_STRATEGIES, doc, lexicon, settings)
    logger.info("Item changes: %d (strategy=%s)", len(records), strategy or "none")
    return strategy, tuple(records)
