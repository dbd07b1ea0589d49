from __future__ import annotations

import logging
from typing import List, Tuple

from bs4 import BeautifulSoup, Tag

from .config import DigestConfig
from .lexicon import Lexicon
from .sections import SectionHint, heading_topic_predicate, walk_section
from .text import element_text

logger = logging.getLogger(__name__)

SYSTEM_HINTS: Tuple[SectionHint, ...] = tuple(
    SectionHint.heading(text, "h2", "h3")
    for text in ("System", "Gameplay", "Game Systems", "Jungle", "Arena", "ARAM")
)

_MAJOR_TOPICS = ("champion", "item", "bug", "upcoming", "related", "tft", "teamfight tactics")

_MIN_CHARS = 15


def _section_lines(el: Tag) -> List[str]:
    if el.name in ("ul", "ol"):
        return [element_text(li) for li in el.find_all("li")]
    if el.name in ("p", "div"):
        return [element_text(el)]
    return []


def extract_system_changes(
    doc: BeautifulSoup,
    lexicon: Lexicon,
    settings: DigestConfig,
) -> Tuple[str, ...]:
    """
    Общие изменения игры (системы, лес, режимы) из всех подходящих секций.

    Разделы собираются в порядке документа; одна и та же строка не повторяется.
    """
    is_new_topic = heading_topic_predicate(_MAJOR_TOPICS, levels=("h1", "h2"))

    headings = [
        el for el in doc.find_all(["h2", "h3"])
        if any(hint.matches(el) for hint in SYSTEM_HINTS)
    ]

    lines: List[str] = []
    for heading in headings:
        for el in walk_section(heading, is_new_topic, max_elements=settings.section_walk_limit):
            for line in _section_lines(el):
                if len(line) > _MIN_CHARS and line not in lines:
                    lines.append(line)
    logger.info("System changes: %d", len(lines))
    return tuple(lines)
