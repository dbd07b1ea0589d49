from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from .text import element_text


@dataclass(frozen=True)
class SectionHint:
    """
    Подсказка для поиска секции.

    - heading: элементы из tags, текст которых содержит text;
    - attribute: любой элемент, у которого id/class содержит text;
    - container: section/div, у которого есть прямой дочерний заголовок с text.

    Сравнение всегда без учёта регистра.
    """

    text: str
    tags: Tuple[str, ...] = ("h2", "h3")
    kind: str = "heading"

    @classmethod
    def heading(cls, text: str, *tags: str) -> "SectionHint":
        return cls(text=text, tags=tuple(tags) or ("h2", "h3"), kind="heading")

    @classmethod
    def attribute(cls, text: str) -> "SectionHint":
        return cls(text=text, tags=(), kind="attribute")

    @classmethod
    def container(cls, text: str, container_tag: str, *heading_tags: str) -> "SectionHint":
        return cls(text=text, tags=(container_tag, *(heading_tags or ("h2", "h3"))), kind="container")

    def describe(self) -> str:
        if self.kind == "attribute":
            return f"[id*={self.text!r}], [class*={self.text!r}]"
        if self.kind == "container":
            return f"{self.tags[0]}:has({'/'.join(self.tags[1:])}:contains({self.text!r}))"
        return f"{'/'.join(self.tags)}:contains({self.text!r})"

    def matches(self, el: Tag) -> bool:
        needle = self.text.lower()
        if self.kind == "attribute":
            for attr in ("id", "class"):
                value = el.get(attr)
                if value is None:
                    continue
                if isinstance(value, (list, tuple)):
                    value = " ".join(value)
                if needle in str(value).lower():
                    return True
            return False
        if self.kind == "container":
            if el.name != self.tags[0]:
                return False
            heading_tags = self.tags[1:]
            return any(
                needle in element_text(child).lower()
                for child in el.find_all(list(heading_tags), recursive=False)
            )
        return el.name in self.tags and needle in element_text(el).lower()


def find_hint_matches(doc: BeautifulSoup | Tag, hint: SectionHint) -> List[Tag]:
    """Все элементы документа, подходящие под подсказку, в порядке документа."""
    if hint.kind == "heading":
        candidates = doc.find_all(list(hint.tags))
    elif hint.kind == "container":
        candidates = doc.find_all(hint.tags[0])
    else:
        candidates = doc.find_all(True)
    return [el for el in candidates if hint.matches(el)]


def locate_sections(
    doc: BeautifulSoup | Tag,
    hints: Sequence[SectionHint],
) -> Tuple[Optional[SectionHint], List[Tag]]:
    """
    Перебирает подсказки по приоритету и возвращает первую сработавшую
    вместе со всеми её совпадениями.
    """
    for hint in hints:
        found = find_hint_matches(doc, hint)
        if found:
            return hint, found
    return None, []


def locate_section(doc: BeautifulSoup | Tag, hints: Sequence[SectionHint]) -> Optional[Tag]:
    """Первый элемент первой сработавшей подсказки или None."""
    _, found = locate_sections(doc, hints)
    return found[0] if found else None


def heading_topic_predicate(
    terms: Sequence[str],
    levels: Sequence[str] = ("h1", "h2"),
) -> Callable[[Tag], bool]:
    """
    Предикат «начинается новая несвязанная тема»: заголовок нужного уровня,
    текст которого содержит одно из terms.
    """
    lowered = tuple(t.lower() for t in terms)

    def _is_new_topic(el: Tag) -> bool:
        if el.name not in levels:
            return False
        text = element_text(el).lower()
        return any(term in text for term in lowered)

    return _is_new_topic


def walk_section(
    start: Tag,
    is_new_topic: Callable[[Tag], bool],
    max_elements: int = 20,
) -> Iterator[Tag]:
    """
    Лениво отдаёт соседние элементы после start, пока не встретится
    заголовок новой темы или не исчерпан лимит шагов.

    Лимит считается по шагам, а не по уникальным элементам, поэтому обход
    завершается даже на зацикленной цепочке соседей.
    """
    current = _next_tag(start)
    steps = 0
    while current is not None and steps < max_elements:
        if is_new_topic(current):
            return
        yield current
        steps += 1
        current = _next_tag(current)


def _next_tag(el: Tag, max_hops: int = 64) -> Optional[Tag]:
    # текстовые узлы между тегами пропускаем, но тоже с ограничением
    sibling = el.next_sibling
    hops = 0
    while sibling is not None and not isinstance(sibling, Tag):
        hops += 1
        if hops > max_hops:
            return None
        sibling = sibling.next_sibling
    return sibling
