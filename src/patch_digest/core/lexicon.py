"""
Entity registries and keyword lexicons.

RU: Реестры сущностей (чемпионы, предметы) и словари ключевых слов.
Загружаются один раз из configs/lexicon.yaml и дальше не меняются;
тесты подставляют свои маленькие реестры через Lexicon.replace().
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from functools import cached_property, lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml

from .config import resolve_configs_file

DEFAULT_LEXICON_PATH = resolve_configs_file("lexicon.yaml")


def _name_regex(name: str) -> str:
    """
    Регулярка для одного имени: пробелы гибкие, апостроф может быть типографским.
    """
    parts = []
    for ch in name:
        if ch == " ":
            parts.append(r"\s+")
        elif ch in "'’":
            parts.append("['’]?")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


def _name_key(name: str) -> str:
    return re.sub(r"[\s'’]+", "", name).lower()


@dataclass(frozen=True)
class EntityRegistry:
    """
    Immutable set of canonical entity names.

    Поиск регистрозависимый и по границам слов: «Sona» не найдётся внутри «Sonata».
    """

    names: Tuple[str, ...]

    @classmethod
    def of(cls, names: Iterable[str]) -> "EntityRegistry":
        return cls(tuple(dict.fromkeys(n.strip() for n in names if n and n.strip())))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.normalize(name) is not None

    def __iter__(self):
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    @cached_property
    def _patterns(self) -> Dict[str, re.Pattern[str]]:
        return {
            name: re.compile(rf"(?<!\w){_name_regex(name)}(?!\w)")
            for name in self.names
        }

    @cached_property
    def _keys(self) -> Dict[str, str]:
        return {_name_key(name): name for name in self.names}

    @cached_property
    def alternation(self) -> str:
        """
        Группа без захвата «любое имя из реестра» для встраивания в шаблоны.

        Имена регистрозависимы даже внутри шаблона с re.IGNORECASE.
        """
        ordered = sorted(self.names, key=len, reverse=True)
        if not ordered:
            return r"(?!x)x"
        body = "|".join(_name_regex(n) for n in ordered)
        return rf"(?<!\w)(?-i:{body})(?!\w)"

    def contains(self, text: str, name: str) -> bool:
        """Упоминается ли name в тексте как отдельное слово."""
        if not text or not name:
            return False
        return next(self.finditer(text, name), None) is not None

    def finditer(self, text: str, name: str) -> Iterator[re.Match[str]]:
        """Все вхождения name в тексте как отдельного слова."""
        pattern = self._patterns.get(name)
        if pattern is None:
            pattern = re.compile(rf"(?<!\w){_name_regex(name)}(?!\w)")
        return pattern.finditer(text or "")

    def mentions(self, text: str) -> List[str]:
        """Все имена реестра, упомянутые в тексте, в порядке реестра."""
        if not text:
            return []
        return [name for name, pattern in self._patterns.items() if pattern.search(text)]

    def identify(self, text: str) -> Optional[str]:
        """
        Имя, которое встречается в тексте раньше других (при равенстве побеждает более длинное).
        """
        best: Optional[Tuple[int, int, str]] = None
        for name, pattern in self._patterns.items():
            m = pattern.search(text or "")
            if m is None:
                continue
            cand = (m.start(), -len(name), name)
            if best is None or cand < best:
                best = cand
        return best[2] if best else None

    def normalize(self, captured: str) -> Optional[str]:
        """Приводит захваченное регуляркой имя к каноническому виду."""
        if not captured:
            return None
        return self._keys.get(_name_key(captured))


@dataclass(frozen=True)
class ReasoningVocabulary:
    pronouns: Tuple[str, ...] = ()
    performance: Tuple[str, ...] = ()
    intensity: Tuple[str, ...] = ()
    popularity: Tuple[str, ...] = ()
    identity: Tuple[str, ...] = ()
    improve_patterns: Tuple[str, ...] = ()
    reduce_patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Lexicon:
    """
    All static vocabulary used by extractors and the classifier.

    RU: Весь статический словарь экстракторов и классификатора.
    """

    champions: EntityRegistry
    items: EntityRegistry
    game_modes: Tuple[str, ...] = ()
    mode_modifiers: Tuple[str, ...] = ()
    entity_mode_filters: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    explicit_improve: Tuple[str, ...] = ("buff",)
    explicit_reduce: Tuple[str, ...] = ("nerf",)
    improve_words: Tuple[str, ...] = ()
    reduce_words: Tuple[str, ...] = ()
    reasoning: ReasoningVocabulary = field(default_factory=ReasoningVocabulary)
    change_vocabulary: Tuple[str, ...] = ()
    stat_keywords: Tuple[str, ...] = ()
    stat_labels: Tuple[str, ...] = ()
    item_vocabulary: Tuple[str, ...] = ()
    repair_keywords: Tuple[str, ...] = ()

    def replace(self, **changes: Any) -> "Lexicon":
        """
        Копия словаря с заменёнными полями; списки имён можно передать как list.
        """
        for key in ("champions", "items"):
            value = changes.get(key)
            if value is not None and not isinstance(value, EntityRegistry):
                changes[key] = EntityRegistry.of(value)
        return dataclasses.replace(self, **changes)

    def mode_filters_for(self, name: str) -> Tuple[str, ...]:
        for key, terms in self.entity_mode_filters.items():
            if key.lower() == (name or "").lower():
                return terms
        return ()


def _tuple(values: Any) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(str(v) for v in values)


def lexicon_from_dict(data: Mapping[str, Any]) -> Lexicon:
    """Строит Lexicon из словаря той же формы, что и lexicon.yaml."""
    sentiment = data.get("sentiment") or {}
    reasoning = data.get("reasoning") or {}
    filters = {
        str(name): _tuple(terms)
        for name, terms in (data.get("entity_mode_filters") or {}).items()
    }
    return Lexicon(
        champions=EntityRegistry.of(_tuple(data.get("champions"))),
        items=EntityRegistry.of(_tuple(data.get("items"))),
        game_modes=_tuple(data.get("game_modes")),
        mode_modifiers=_tuple(data.get("mode_modifiers")),
        entity_mode_filters=MappingProxyType(filters),
        explicit_improve=_tuple(sentiment.get("explicit_improve")) or ("buff",),
        explicit_reduce=_tuple(sentiment.get("explicit_reduce")) or ("nerf",),
        improve_words=_tuple(sentiment.get("improve")),
        reduce_words=_tuple(sentiment.get("reduce")),
        reasoning=ReasoningVocabulary(
            pronouns=_tuple(reasoning.get("pronouns")),
            performance=_tuple(reasoning.get("performance")),
            intensity=_tuple(reasoning.get("intensity")),
            popularity=_tuple(reasoning.get("popularity")),
            identity=_tuple(reasoning.get("identity")),
            improve_patterns=_tuple(reasoning.get("improve_patterns")),
            reduce_patterns=_tuple(reasoning.get("reduce_patterns")),
        ),
        change_vocabulary=_tuple(data.get("change_vocabulary")),
        stat_keywords=_tuple(data.get("stat_keywords")),
        stat_labels=_tuple(data.get("stat_labels")),
        item_vocabulary=_tuple(data.get("item_vocabulary")),
        repair_keywords=_tuple(data.get("repair_keywords")),
    )


@lru_cache(maxsize=8)
def _load_lexicon_data(path: Optional[str | Path]) -> Dict[str, Any]:
    target = Path(path) if path is not None else DEFAULT_LEXICON_PATH
    if not target.exists():
        raise FileNotFoundError(f"Lexicon file not found: {target}")
    with target.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data if isinstance(data, dict) else {}


@lru_cache(maxsize=8)
def load_lexicon(path: Optional[str | Path] = None) -> Lexicon:
    """
    Load the lexicon once per path.

    RU: Загружает словарь один раз на путь; результат неизменяемый.
    """
    return lexicon_from_dict(_load_lexicon_data(path))
