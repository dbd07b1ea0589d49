"""
================================================================================
EN: Patch notes extraction pipeline
RU: Конвейер извлечения патчноутов
================================================================================

EN: The pipeline takes an already parsed document tree and a version label
RU: Конвейер принимает уже разобранное дерево документа и метку версии
EN: and returns one immutable PatchContent:
RU: и возвращает один неизменяемый PatchContent:

EN: 1. title and overview
RU: 1. заголовок и обзор
EN: 2. champion changes (three strategies + enhancement pass)
RU: 2. изменения чемпионов (три стратегии + проход дополнения)
EN: 3. item changes, bug fixes, system changes
RU: 3. изменения предметов, исправления ошибок, системные изменения

EN: The pipeline never mutates the tree and never raises on "nothing found".
RU: Конвейер не меняет дерево и не бросает исключений, если ничего не найдено.
================================================================================
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

# EN: Extraction settings and static vocabulary
# RU: Настройки извлечения и статический словарь
from .config import DigestConfig, load_digest_config
from .lexicon import Lexicon, load_lexicon
from .models import PatchContent

# EN: Per-section extractors
# RU: Экстракторы по разделам
from .bugfixes import extract_bug_fixes
from .characters import extract_character_changes
from .diagnostics import ExtractionDiagnostics
from .items import extract_item_changes
from .system_changes import extract_system_changes
from .text import element_text

logger = logging.getLogger(__name__)

TITLE_SELECTOR = "h1, .article-title, [class*='title']"

OVERVIEW_SELECTORS = (
    "p:-soup-contains('Welcome to Patch')",
    ".article-intro p",
    ".intro-text",
    "p:first-of-type",
    "[class*='intro'] p",
)

_OVERVIEW_MIN_CHARS = 20


# ============================================================================
# EN: Title and overview
# RU: Заголовок и обзор
# ============================================================================
def extract_title(doc: BeautifulSoup | Tag, version: str) -> str:
    """
    EN: First h1 / article title, or a synthetic "Patch X.Y Notes".
    RU: Первый h1 / заголовок статьи, иначе «Patch X.Y Notes».
    """
    el = doc.select_one(TITLE_SELECTOR)
    title = element_text(el)
    return title or f"Patch {version} Notes"


def extract_overview(doc: BeautifulSoup | Tag, max_paragraphs: int = 3) -> Optional[str]:
    """
    EN: The first selector that yields paragraphs wins; up to max_paragraphs are kept.
    RU: Побеждает первый селектор, давший абзацы; берём не больше max_paragraphs.
    """
    for selector in OVERVIEW_SELECTORS:
        paragraphs: List[str] = []
        for el in doc.select(selector):
            text = element_text(el)
            if len(text) > _OVERVIEW_MIN_CHARS and text not in paragraphs:
                paragraphs.append(text)
            if len(paragraphs) >= max_paragraphs:
                break
        if paragraphs:
            return "\n\n".join(paragraphs)
    return None


# ============================================================================
# EN: Main entry point
# RU: Главная точка входа
# ============================================================================
def extract_patch_content(
    doc: Optional[BeautifulSoup | Tag],
    version: str,
    *,
    url: Optional[str] = None,
    lexicon: Optional[Lexicon] = None,
    settings: Optional[DigestConfig] = None,
    diagnostics: Optional[ExtractionDiagnostics] = None,
) -> PatchContent:
    """
    EN: Extract a structured summary from a patch notes document.
    RU: Извлекает структурированную сводку из документа с патчноутами.

    Parameters / Параметры:
    ----------------------
    doc: EN: parsed document (BeautifulSoup or any Tag); never modified
         RU: разобранный документ (BeautifulSoup или любой Tag); не изменяется
    version: EN: patch label such as "14.1"
             RU: метка патча, например "14.1"
    lexicon / settings: EN: override the defaults loaded from configs/
                        RU: подмена значений по умолчанию из configs/
    diagnostics: EN: optional collector for winning strategies and timings
                 RU: необязательный сборщик сработавших стратегий и времени

    Raises / Исключения:
    -------------------
    ValueError: EN: when doc is None / RU: если doc равен None
    """
    if doc is None:
        raise ValueError("Document tree is required")

    lex = lexicon or load_lexicon()
    cfg = settings or load_digest_config()
    started = time.perf_counter()

    title = extract_title(doc, version)
    overview = extract_overview(doc, cfg.overview_paragraphs)

    champion_strategy, characters = extract_character_changes(doc, lex, cfg)
    item_strategy, items = extract_item_changes(doc, lex, cfg)
    bug_fixes = extract_bug_fixes(doc, lex, cfg)
    system_changes = extract_system_changes(doc, lex, cfg)

    content = PatchContent(
        version=version,
        title=title,
        url=url,
        overview=overview,
        character_changes=characters,
        item_changes=items,
        system_changes=system_changes,
        bug_fixes=bug_fixes,
    )

    duration_ms = (time.perf_counter() - started) * 1000.0
    logger.info(
        "Extracted patch %s: %d champions, %d items, %d bug fixes, %d system changes (%.1f ms)",
        version,
        len(characters),
        len(items),
        len(bug_fixes),
        len(system_changes),
        duration_ms,
    )

    if diagnostics is not None:
        diagnostics.record(
            content,
            champion_strategy=champion_strategy,
            item_strategy=item_strategy,
            duration_ms=duration_ms,
        )

    return content
