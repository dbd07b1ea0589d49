"""
Text helpers shared by all extractors.
Общие текстовые помощники для всех экстракторов.

- whitespace normalisation / нормализация пробелов
- stat arrow and number patterns / шаблоны стрелок и чисел
- sentence splitting / разбиение на предложения
- element text queries over a BeautifulSoup tree / запросы текста по дереву BeautifulSoup
"""
from __future__ import annotations

import re
from typing import Iterable, Iterator, List

from bs4 import BeautifulSoup, Tag

# =============================================================================
# PATTERNS / ШАБЛОНЫ
# =============================================================================

# Стрелки, которыми патчноуты обозначают «было → стало»
ARROW_CHARS = "→⇒➔⟶▶"
ARROW = f"[{ARROW_CHARS}]"

NUMBER = r"\d+(?:\.\d+)?"
# 55/80/105 или 0.5: значение по уровням способности
SCALING = r"\d+(?:\.\d+)?(?:\s*/\s*\d+(?:\.\d+)?)*"

ARROW_PAIR_RE = re.compile(rf"({SCALING})\s*%?\s*{ARROW}\s*({SCALING})")
ABILITY_SLOT = r"(?:[QWER]|Passive)"

_WS_RE = re.compile(r"\s+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+(?=\s|$)|\n+")

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

# Блочные теги: по ним ищем «самый глубокий» элемент с текстом
BLOCK_TAGS = frozenset({
    "div", "p", "article", "section", "main", "aside",
    "header", "footer", "blockquote",
    "li", "ul", "ol",
    "td", "th", "tr", "table",
    "details", "summary",
    *HEADING_TAGS,
})


def clean_text(text: str | None) -> str:
    """
    Схлопывает пробелы и переводы строк, обрезает края.
    """
    if not text:
        return ""
    return _WS_RE.sub(" ", text).strip()


def preview(text: str, limit: int = 80) -> str:
    value = (text or "").strip()
    if len(value) <= limit:
        return value
    return value[:limit].rstrip() + "…"


def split_sentences(text: str) -> List[str]:
    """
    Делит текст на предложения по .!? и переводам строк.
    Десятичные числа (0.5) не разрываются.
    """
    return [part.strip() for part in _SENTENCE_SPLIT_RE.split(text or "") if part and part.strip()]


def term_pattern(terms: Iterable[str]) -> re.Pattern[str]:
    """
    Регулярка «любое из слов» с границами слов, без учёта регистра.
    """
    alternatives = sorted({t for t in terms if t}, key=len, reverse=True)
    if not alternatives:
        return re.compile(r"(?!x)x")
    body = "|".join(re.escape(t) for t in alternatives)
    return re.compile(rf"(?<![\w'])(?:{body})(?![\w'])", re.IGNORECASE)


# =============================================================================
# DOCUMENT QUERIES / ЗАПРОСЫ К ДОКУМЕНТУ
# =============================================================================

def element_text(el: Tag | None) -> str:
    if el is None:
        return ""
    return clean_text(el.get_text(" "))


def document_text(doc: BeautifulSoup | Tag) -> str:
    """Весь текст документа одной строкой, как видит его читатель."""
    return clean_text(doc.get_text(" "))


def elements_containing_text(
    doc: BeautifulSoup | Tag,
    needle: str,
    *,
    innermost_blocks: bool = False,
) -> Iterator[Tag]:
    """
    Элементы, текст которых (вместе с потомками) содержит needle без учёта регистра.

    innermost_blocks=True оставляет только блочные элементы, у которых
    ни один блочный потомок сам не содержит needle, то есть «листья»
    с нужным текстом, без их контейнеров.
    """
    low = needle.lower()
    for el in doc.find_all(True):
        if low not in el.get_text(" ").lower():
            continue
        if innermost_blocks:
            if el.name not in BLOCK_TAGS:
                continue
            if any(
                low in child.get_text(" ").lower()
                for child in el.find_all(list(BLOCK_TAGS))
            ):
                continue
        yield el
