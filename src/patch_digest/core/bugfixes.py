"""
Bug fix extraction.

RU: Исправления ошибок: сначала секция «Bug Fixes» / «QoL», если её нет,
поиск по всему документу элементов со словами Fixed/Bug/Resolved.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from bs4 import BeautifulSoup, Tag

from .config import DigestConfig
from .lexicon import Lexicon
from .sections import SectionHint, find_hint_matches, heading_topic_predicate, walk_section
from .text import element_text, elements_containing_text

logger = logging.getLogger(__name__)

BUG_HINTS: Tuple[SectionHint, ...] = (
    SectionHint.heading("Bug", "h2", "h3", "h4"),
    SectionHint.heading("QoL", "h2", "h3", "h4"),
    SectionHint.heading("Fix", "h2", "h3", "h4"),
    SectionHint.heading("Bugfix", "h2", "h3", "h4"),
    SectionHint.attribute("bug"),
    SectionHint.attribute("fix"),
)

_STOP_TOPICS = (
    "champion", "item", "upcoming", "related", "patch highlights", "system",
)

_FALLBACK_NEEDLES = ("Fixed", "fixed", "Bug", "bug", "Resolved", "resolved")

_MAX_FIX_CHARS = 500


def is_bug_fix(text: str, lexicon: Lexicon) -> bool:
    """
    Строка похожа на исправление: есть слово-маркер, нет признаков ложного срабатывания.
    """
    if not text or len(text) < 10 or len(text) > _MAX_FIX_CHARS:
        return False
    lower = text.lower()
    if not any(term in lower for term in lexicon.repair_keywords):
        return False
    # упоминание чемпиона/предмета без «fixed» обычно описывает изменение баланса
    if "fixed" not in lower:
        if "champion" in lower or "item" in lower:
            return False
        if lexicon.champions.mentions(text) or lexicon.items.mentions(text):
            return False
    return True


def _element_lines(el: Tag) -> List[str]:
    if el.name in ("ul", "ol"):
        return [element_text(li) for li in el.find_all("li")]
    return [element_text(el)]


def section_scan(doc: BeautifulSoup, lexicon: Lexicon, settings: DigestConfig) -> List[str]:
    is_new_topic = heading_topic_predicate(_STOP_TOPICS, levels=("h1", "h2", "h3"))
    fixes: List[str] = []
    for hint in BUG_HINTS:
        for section in find_hint_matches(doc, hint):
            if section.name in ("h1", "h2", "h3", "h4"):
                body = walk_section(section, is_new_topic, max_elements=settings.section_walk_limit)
            else:
                body = iter([section])
            for el in body:
                for line in _element_lines(el):
                    if line not in fixes and is_bug_fix(line, lexicon):
                        fixes.append(line)
        if fixes:
            logger.debug("Bug fix section matched by %s", hint.describe())
            return fixes
    return fixes


def _is_near_duplicate(candidate: str, accepted: List[str]) -> bool:
    low = candidate.lower()
    head = low[:50]
    for prev in accepted:
        prev_low = prev.lower()
        if prev_low == low or low.startswith(prev_low) or head in prev_low:
            return True
    return False


def fallback_scan(doc: BeautifulSoup, lexicon: Lexicon, settings: DigestConfig) -> List[str]:
    """Поиск по всему документу, не больше bug_fix_limit строк."""
    fixes: List[str] = []
    seen = set()
    for needle in _FALLBACK_NEEDLES:
        for el in elements_containing_text(doc, needle, innermost_blocks=True):
            if len(fixes) >= settings.bug_fix_limit:
                return fixes
            if id(el) in seen:
                continue
            seen.add(id(el))
            text = element_text(el)
            if len(text) < 15 or not is_bug_fix(text, lexicon):
                continue
            if _is_near_duplicate(text, fixes):
                continue
            fixes.append(text)
    return fixes


def extract_bug_fixes(
    doc: BeautifulSoup,
    lexicon: Lexicon,
    settings: DigestConfig,
) -> Tuple[str, ...]:
    fixes = section_scan(doc, lexicon, settings)
    strategy = "section_scan"
    if not fixes:
        fixes = fallback_scan(doc, lexicon, settings)
        strategy = "fallback_scan"
    logger.info("Bug fixes: %d (strategy=%s)", len(fixes), strategy if fixes else "none")
    return tuple(fixes)
