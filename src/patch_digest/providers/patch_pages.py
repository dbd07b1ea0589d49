"""Patch notes page provider (requests + BeautifulSoup).

RU: Провайдер страниц с патчноутами: поиск адреса статьи по версии,
определение текущей версии и загрузка HTML в дерево BeautifulSoup.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from dotenv import find_dotenv, load_dotenv

from patch_digest.core.cache import PatchContentCache
from patch_digest.core.config import DigestConfig, load_digest_config
from patch_digest.core.diagnostics import ExtractionDiagnostics
from patch_digest.core.lexicon import Lexicon
from patch_digest.core.models import PatchContent
from patch_digest.core.pipelines import extract_patch_content

_dotenv_path = find_dotenv(filename=".env", usecwd=True)
if _dotenv_path:
    load_dotenv(_dotenv_path, override=False)

logger = logging.getLogger(__name__)

VERSION_RE = re.compile(r"^\d+\.\d+$")
_HREF_VERSION_RE = re.compile(r"patch[-_](\d+)[-_](\d+)", re.IGNORECASE)
_TEXT_VERSION_RE = re.compile(r"patch\s+(\d+\.\d+)", re.IGNORECASE)

INDEX_LINK_SELECTOR = "a[href*='patch-'], a[href*='game-updates'], a[href*='patch']"
ARTICLE_LINK_SELECTOR = "a[href*='/news/game-updates/']"
NOISE_TAGS = ("script", "style", "noscript")


class PatchDigestError(Exception):
    """Базовая ошибка пакета."""


class InvalidVersionError(PatchDigestError, ValueError):
    """Метка версии не вида <major>.<minor>."""


class PatchNotFoundError(PatchDigestError):
    """Страницу патча не удалось найти."""


class PatchFetchError(PatchDigestError):
    """Сетевая ошибка при загрузке страницы."""


def validate_version(label: str) -> str:
    value = (label or "").strip()
    if not VERSION_RE.match(value):
        raise InvalidVersionError(f"Invalid patch version {label!r}; expected e.g. 14.1")
    return value


def version_slug(version: str) -> str:
    return version.replace(".", "-")


class PatchPageClient:
    """
    Thin wrapper around a requests.Session for the patch notes site.

    RU: Обёртка над requests.Session: все запросы с одним User-Agent и таймаутом.
    """

    def __init__(
        self,
        settings: Optional[DigestConfig] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings or load_digest_config()
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", self.settings.user_agent)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "PatchPageClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------ HTTP

    def _get(self, url: str) -> requests.Response:
        try:
            response = self._session.get(url, timeout=self.settings.request_timeout, allow_redirects=True)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Request failed: %s (%s)", url, exc)
            raise PatchFetchError(f"Failed to load {url}: {exc}") from exc
        return response

    def url_exists(self, url: str) -> bool:
        try:
            response = self._session.head(url, timeout=self.settings.request_timeout, allow_redirects=True)
        except requests.RequestException as exc:
            logger.debug("HEAD %s failed: %s", url, exc)
            return False
        return response.ok

    def fetch_document(self, url: str) -> BeautifulSoup:
        """Загружает страницу и убирает script/style/noscript."""
        response = self._get(url)
        doc = BeautifulSoup(response.text, "html.parser")
        for tag in doc.find_all(NOISE_TAGS):
            tag.decompose()
        logger.info("Loaded %s (%d characters of text)", url, len(doc.get_text()))
        return doc

    # ------------------------------------------------------------ discovery

    def _index_links(self, selector: str) -> List[Tuple[str, str]]:
        doc = self.fetch_document(self.settings.index_url)
        links = []
        for a in doc.select(selector):
            href = a.get("href")
            if href:
                links.append((str(href), a.get_text(" ", strip=True)))
        logger.debug("Index page: %d candidate links for %s", len(links), selector)
        return links

    def current_patch_version(self) -> str:
        """
        Версия самой свежей статьи на странице-индексе.

        Raises PatchNotFoundError, если на странице нет ни одной ссылки на патч.
        """
        for href, text in self._index_links(INDEX_LINK_SELECTOR):
            m = _HREF_VERSION_RE.search(href)
            if m:
                version = f"{m.group(1)}.{m.group(2)}"
                logger.info("Current patch version from link: %s", version)
                return version
            m = _TEXT_VERSION_RE.search(text)
            if m:
                logger.info("Current patch version from link text: %s", m.group(1))
                return m.group(1)
        raise PatchNotFoundError("No patch notes links found on the index page")

    def resolve_patch_url(self, version: str) -> str:
        """
        Адрес статьи: прямой шаблон (проверка HEAD), затем поиск по индексу,
        затем самая свежая статья.
        """
        version = validate_version(version)
        direct = self.settings.page_url_template.format(slug=version_slug(version))
        if self.url_exists(direct):
            logger.info("Patch %s found at direct URL %s", version, direct)
            return direct

        links = self._index_links(ARTICLE_LINK_SELECTOR)
        slug = version_slug(version)
        for href, text in links:
            low = text.lower()
            if slug in href or version in low or f"patch {version}" in low:
                url = urljoin(self.settings.base_url, href)
                logger.info("Patch %s found via index: %s", version, url)
                return url

        if links:
            url = urljoin(self.settings.base_url, links[0][0])
            logger.warning("Patch %s not listed; falling back to most recent article %s", version, url)
            return url

        raise PatchNotFoundError(f"Could not resolve patch notes URL for {version}")

    # ----------------------------------------------------------- extraction

    def fetch_patch_content(
        self,
        version: Optional[str] = None,
        *,
        lexicon: Optional[Lexicon] = None,
        cache: Optional[PatchContentCache] = None,
        diagnostics: Optional[ExtractionDiagnostics] = None,
    ) -> PatchContent:
        """
        Resolve, download and extract a patch. Without version the current one is used.

        RU: Найти, скачать и разобрать патч; при наличии кэша сначала смотрим в него.
        """
        version = validate_version(version) if version else self.current_patch_version()
        if cache is not None:
            cached = cache.get(version)
            if cached is not None:
                logger.info("Patch %s served from cache", version)
                return cached

        url = self.resolve_patch_url(version)
        doc = self.fetch_document(url)
        content = extract_patch_content(
            doc,
            version,
            url=url,
            lexicon=lexicon,
            settings=self.settings,
            diagnostics=diagnostics,
        )
        if cache is not None:
            cache.put(content)
        return content
