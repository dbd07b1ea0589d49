"""
Change-direction classifier for champion records.

RU: Взвешенная оценка направления изменений чемпиона: усиление, ослабление
или корректировка. Классификатор не хранит состояния; одинаковый вход
всегда даёт одинаковый вердикт.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .heuristics import is_out_of_domain, is_reasoning
from .lexicon import Lexicon, load_lexicon
from .models import ChangeRecord, Verdict
from .text import ARROW, ARROW_PAIR_RE, SCALING, split_sentences

logger = logging.getLogger(__name__)

VERDICT_THRESHOLD = 3

_PAIR = rf"({SCALING})\s*%?\s*{ARROW}\s*({SCALING})"

# (имя, шаблон, вес, больше_лучше, все_вхождения)
_STAT_RULES: Tuple[Tuple[str, re.Pattern[str], int, bool, bool], ...] = (
    ("damage", re.compile(rf"damage[^\n]*?{_PAIR}"), 2, True, False),
    ("cooldown", re.compile(rf"cooldown[^\n]*?{_PAIR}"), 2, False, False),
    ("range", re.compile(rf"range[^\n]*?{_PAIR}"), 1, True, False),
    (
        "base_stat",
        re.compile(rf"base\s+(?:health|hp|ad|ap|armor|mr|magic\s+resist)[^\n]*?{_PAIR}"),
        2,
        True,
        True,
    ),
    ("cost", re.compile(rf"(?:mana\s+)?cost[^\n]*?{_PAIR}"), 1, False, False),
    ("duration", re.compile(rf"(?:shield|heal(?!th)|duration)[^\n]*?{_PAIR}"), 1, True, False),
)

_LOWER_IS_BETTER_RE = re.compile(r"cooldown|cost")


@dataclass(frozen=True)
class ScoreCard:
    """Итог подсчёта: два накопителя и найденное пояснение."""

    improve: int
    reduce: int
    reasoning: Optional[str] = None

    @property
    def diff(self) -> int:
        return self.improve - self.reduce

    @property
    def verdict(self) -> Verdict:
        if self.diff >= VERDICT_THRESHOLD:
            return Verdict.IMPROVEMENT
        if self.diff <= -VERDICT_THRESHOLD:
            return Verdict.REDUCTION
        return Verdict.ADJUSTMENT


ClassifierInput = Union[ChangeRecord, str, Sequence[str]]


def _parse_value(raw: str) -> Optional[List[float]]:
    try:
        return [float(part) for part in re.sub(r"\s+", "", raw).split("/") if part]
    except ValueError:
        return None


def arrow_direction(old: str, new: str) -> int:
    """
    +1 если значение выросло, -1 если упало, 0 если не понять.

    Для списков по уровням (55/80/105) решает большинство позиций;
    списки разной длины не сравниваются.
    """
    before, after = _parse_value(old), _parse_value(new)
    if not before or not after or len(before) != len(after):
        return 0
    ups = sum(1 for a, b in zip(before, after) if b > a)
    downs = sum(1 for a, b in zip(before, after) if b < a)
    if ups > downs:
        return 1
    if downs > ups:
        return -1
    return 0


def _split_input(value: ClassifierInput) -> Tuple[Optional[str], List[str]]:
    if isinstance(value, ChangeRecord):
        return value.name, list(value.changes)
    if isinstance(value, str):
        return None, [line for line in value.splitlines() if line.strip()]
    return None, [str(line) for line in value if line and str(line).strip()]


def _score_arrows(line: str) -> Tuple[int, int]:
    improve = reduce = 0
    for m in ARROW_PAIR_RE.finditer(line):
        direction = arrow_direction(m.group(1), m.group(2))
        if direction == 0:
            continue
        if _LOWER_IS_BETTER_RE.search(line[: m.start()]):
            direction = -direction
        if direction > 0:
            improve += 2
        else:
            reduce += 2
    return improve, reduce


def _score_stat_rules(line: str) -> Tuple[int, int]:
    improve = reduce = 0
    for name, pattern, weight, higher_is_better, every in _STAT_RULES:
        if name == "duration" and "cooldown" in line:
            continue
        matches: Iterable[re.Match[str]] = pattern.finditer(line) if every else filter(None, [pattern.search(line)])
        for m in matches:
            direction = arrow_direction(m.group(1), m.group(2))
            if direction == 0:
                continue
            better = direction > 0 if higher_is_better else direction < 0
            if better:
                improve += weight
            else:
                reduce += weight
    return improve, reduce


@lru_cache(maxsize=16)
def _compile_all(patterns: Tuple[str, ...]) -> Tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def _first_reasoning(name: Optional[str], lines: Sequence[str], lexicon: Lexicon) -> Optional[str]:
    for line in lines:
        for sentence in split_sentences(line):
            if is_reasoning(sentence, name, lexicon):
                return sentence
    return None


def score_changes(
    value: ClassifierInput,
    *,
    name: Optional[str] = None,
    lexicon: Optional[Lexicon] = None,
) -> ScoreCard:
    """
    Подсчитывает очки усиления и ослабления по строкам изменений.

    Строки про альтернативные режимы в подсчёт не попадают.
    """
    lex = lexicon or load_lexicon()
    record_name, raw_lines = _split_input(value)
    name = name or record_name
    lines = [line for line in raw_lines if not is_out_of_domain(name, line, lex)]

    improve = reduce = 0
    text = "\n".join(lines).lower()

    # 1. явные buff / nerf
    if any(term in text for term in lex.explicit_improve):
        improve += 3
    if any(term in text for term in lex.explicit_reduce):
        reduce += 3

    for line in lines:
        low = line.lower()
        # 2. стрелки old → new
        up, down = _score_arrows(low)
        improve += up
        reduce += down
        # 3. правила по характеристикам
        up, down = _score_stat_rules(low)
        improve += up
        reduce += down

    # 4. тональность
    improve += sum(1 for word in lex.improve_words if word in text)
    reduce += sum(1 for word in lex.reduce_words if word in text)

    # 5. пояснение разработчиков
    reasoning = _first_reasoning(name, lines, lex)
    if reasoning:
        vocab = lex.reasoning
        if any(p.search(reasoning) for p in _compile_all(vocab.improve_patterns)):
            improve += 2
        if any(p.search(reasoning) for p in _compile_all(vocab.reduce_patterns)):
            reduce += 2

    card = ScoreCard(improve=improve, reduce=reduce, reasoning=reasoning)
    logger.debug("Scored %s: +%d / -%d -> %s", name or "<text>", improve, reduce, card.verdict.value)
    return card


def classify(value: ClassifierInput, *, lexicon: Optional[Lexicon] = None) -> Verdict:
    """
    Classify a champion record (or raw change lines) as improvement,
    reduction or adjustment.

    RU: Вердикт по записи чемпиона или по набору строк.
    """
    return score_changes(value, lexicon=lexicon).verdict
