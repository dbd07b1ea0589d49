"""
Text predicates shared by the champion extractor and the classifier.

RU: Общие предикаты над текстом: фильтр игровых режимов, распознавание
пояснений разработчиков, признаки описания изменения, извлечение строк
характеристик вида «Base AD: 60 → 65».
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List, Optional, Sequence

from .lexicon import Lexicon
from .text import ABILITY_SLOT, ARROW, ARROW_PAIR_RE, SCALING, clean_text, split_sentences, term_pattern

# Значение с необязательным процентом: 55/80/105, 0.5, 30%
VALUE = rf"{SCALING}%?"

# Подпись характеристики: до четырёх слов перед числом
_LABEL = r"(?P<label>[A-Za-z][A-Za-z']*(?:[ \t]+[A-Za-z][A-Za-z']*){0,3})"

STAT_ARROW_RE = re.compile(
    rf"{_LABEL}\s*:?\s*(?P<old>{VALUE})\s*{ARROW}\s*(?P<new>{VALUE})"
)

ABILITY_ARROW_RE = re.compile(
    rf"(?<![\w'])(?P<slot>{ABILITY_SLOT})\s*[-–—:]+\s*"
    rf"(?P<desc>[^→⇒➔⟶▶\n]{{0,60}}?)\s*"
    rf"(?P<old>{VALUE})\s*{ARROW}\s*(?P<new>{VALUE})"
)

_ABILITY_TOKEN_RE = re.compile(r"(?<![\w'])(?:[QWER]|Passive)\s*[-–—:]")


def format_stat_change(label: str, old: str, new: str) -> str:
    return f"{clean_text(label)}: {_compact(old)} → {_compact(new)}"


def _compact(value: str) -> str:
    return re.sub(r"\s+", "", value)


@lru_cache(maxsize=32)
def _mode_pattern(terms: Sequence[str]) -> re.Pattern[str]:
    return term_pattern(terms)


def is_game_mode_content(text: str, lexicon: Lexicon) -> bool:
    """
    Относится ли текст к альтернативному режиму (ARAM, Arena, ...),
    а не к балансу основной игры.
    """
    if not text:
        return False
    if _mode_pattern(lexicon.game_modes).search(text):
        return True
    lower = text.lower()
    return "%" in lower and any(term in lower for term in lexicon.mode_modifiers)


def is_entity_mode_content(name: str, text: str, lexicon: Lexicon) -> bool:
    """Жёсткий фильтр для чемпионов, чьё имя совпадает с названием режима."""
    terms = lexicon.mode_filters_for(name)
    if not terms or not text:
        return False
    lower = text.lower()
    return any(term in lower for term in terms)


def is_out_of_domain(name: Optional[str], text: str, lexicon: Lexicon) -> bool:
    if is_game_mode_content(text, lexicon):
        return True
    return bool(name) and is_entity_mode_content(name, text, lexicon)


@lru_cache(maxsize=16)
def _reasoning_patterns(pronouns: Sequence[str], prefix_terms: Sequence[str], word_terms: Sequence[str]):
    pronoun_re = term_pattern(pronouns)
    prefix = "|".join(re.escape(t) for t in sorted(prefix_terms, key=len, reverse=True)) or r"(?!x)x"
    words = "|".join(re.escape(t) for t in sorted(word_terms, key=len, reverse=True)) or r"(?!x)x"
    context_re = re.compile(rf"(?<!\w)(?:{prefix})|(?<!\w)(?:{words})(?!\w)", re.IGNORECASE)
    return pronoun_re, context_re


def is_reasoning(text: str, name: Optional[str], lexicon: Lexicon) -> bool:
    """
    Похоже ли предложение на пояснение разработчиков («почему мы это меняем»).

    Условия: не короче 50 символов, упоминает сущность или местоимение,
    и содержит лексику о силе, интенсивности, популярности или роли.
    """
    if not text or len(text) < 50:
        return False
    vocab = lexicon.reasoning
    pronoun_re, context_re = _reasoning_patterns(
        vocab.pronouns,
        vocab.performance + vocab.popularity + vocab.identity,
        vocab.intensity,
    )
    lower = text.lower()
    mentions = bool(name) and name.lower() in lower
    if not mentions and not pronoun_re.search(text):
        return False
    return context_re.search(text) is not None


def has_change_indicators(text: str, lexicon: Lexicon) -> bool:
    """
    Признаки описания изменения: стрелка между числами, слот способности
    с разделителем, лексика баффа/нерфа или характеристика рядом с числом.
    """
    if ARROW_PAIR_RE.search(text):
        return True
    if _ABILITY_TOKEN_RE.search(text):
        return True
    lower = text.lower()
    if any(term in lower for term in lexicon.change_vocabulary):
        return True
    return _stat_near_digit(lexicon.stat_keywords).search(text) is not None


@lru_cache(maxsize=16)
def _stat_near_digit(keywords: Sequence[str]) -> re.Pattern[str]:
    body = "|".join(re.escape(k) for k in keywords) or r"(?!x)x"
    return re.compile(rf"(?<!\w)(?:{body})[^\d.!?]{{0,25}}\d", re.IGNORECASE)


def is_valid_stat_label(label: str, lexicon: Lexicon) -> bool:
    lower = label.lower()
    return any(term in lower for term in lexicon.stat_labels)


@lru_cache(maxsize=16)
def _entity_re(alternation: str) -> re.Pattern[str]:
    return re.compile(alternation)


def _strip_entity_prefix(label: str, lexicon: Lexicon) -> str:
    """«and Ashe Base AD» → «Base AD»: имя сущности и всё до него не входят в подпись."""
    cut = 0
    for registry in (lexicon.champions, lexicon.items):
        for m in _entity_re(registry.alternation).finditer(label):
            cut = max(cut, m.end())
    rest = label[cut:].strip()
    return rest or label


def extract_stat_lines(text: str, lexicon: Lexicon, name: Optional[str] = None) -> List[str]:
    """
    Строки изменений характеристик из произвольного текста.

    Сначала строки способностей (Q - Damage: 55/80 → 50/75), затем
    обычные подписи (Base AD: 60 → 65); подстроки уже найденного пропускаются.
    Строки про альтернативные режимы отбрасываются.
    """
    found: List[str] = []

    def _push(line: str) -> None:
        if not line or is_out_of_domain(name, line, lexicon):
            return
        if any(line in prev or prev in line for prev in found):
            return
        found.append(line)

    for m in ABILITY_ARROW_RE.finditer(text or ""):
        desc = clean_text(m.group("desc")).rstrip(":-–— ")
        if desc and len(desc) < 50:
            label = f"{m.group('slot')} - {desc}"
        else:
            label = m.group("slot")
        _push(format_stat_change(label, m.group("old"), m.group("new")))

    for m in STAT_ARROW_RE.finditer(text or ""):
        label = _strip_entity_prefix(clean_text(m.group("label")), lexicon)
        if not is_valid_stat_label(label, lexicon):
            continue
        _push(format_stat_change(label, m.group("old"), m.group("new")))

    return found


def descriptive_changes(
    text: str,
    name: Optional[str],
    lexicon: Lexicon,
    *,
    max_lines: int = 8,
) -> List[str]:
    """
    Запасной вариант без чисел: предложения, похожие на описание изменения.
    """
    if name and is_entity_mode_content(name, text, lexicon):
        return []
    changes: List[str] = []
    for sentence in split_sentences(text):
        cleaned = clean_text(sentence)
        if len(cleaned) < 15:
            continue
        if is_game_mode_content(cleaned, lexicon):
            continue
        if is_reasoning(cleaned, name, lexicon):
            continue
        if not has_change_indicators(cleaned, lexicon):
            continue
        if cleaned not in changes:
            changes.append(cleaned)
        if len(changes) >= max_lines:
            break
    return changes
