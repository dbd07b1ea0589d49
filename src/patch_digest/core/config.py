# ==============================================================================
# Configuration module for patch notes extraction settings
# Модуль конфигурации для настроек извлечения патчноутов
# ==============================================================================
# This file manages limits of the extraction pipeline, page fetching settings
# and the result cache size. Settings come from a YAML file and can be
# overridden with environment variables.
#
# Этот файл управляет лимитами конвейера извлечения, настройками загрузки
# страниц и размером кэша результатов. Настройки берутся из YAML-файла и
# могут переопределяться переменными окружения.
# ==============================================================================

from __future__ import annotations

import logging

# Import Path for working with file paths in a cross-platform way
# Импортируем Path для работы с путями к файлам кросс-платформенным способом
from pathlib import Path

# Import Optional to indicate that a value can be None
# Импортируем Optional, чтобы указать, что значение может быть None
from typing import Optional

# Import yaml to read YAML configuration files
# Импортируем yaml для чтения конфигурационных файлов YAML
import yaml

# Import Pydantic models for data validation and settings management
# Импортируем модели Pydantic для валидации данных и управления настройками
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# ==============================================================================
# Main configuration class for patch notes extraction
# Основной класс конфигурации для извлечения патчноутов
# ==============================================================================
class DigestConfig(BaseModel):
    """
    Limits and endpoints used by the extraction pipeline and its collaborators.
    Лимиты и адреса, используемые конвейером извлечения и его окружением.

    Every scan in the pipeline is hard-capped by one of these numbers, so
    a single extraction always finishes in bounded time.
    Каждый проход конвейера ограничен одним из этих чисел, поэтому
    извлечение всегда завершается за ограниченное время.
    """

    # How many sibling elements a section walk may visit
    # Сколько соседних элементов может пройти обход секции
    section_walk_limit: int = 20

    # Walk budget for item sections (item lists tend to be longer)
    # Лимит обхода для секций предметов (списки предметов обычно длиннее)
    item_walk_limit: int = 30

    # Elements collected after a per-champion sub-heading
    # Сколько элементов собирать после подзаголовка чемпиона
    champion_block_limit: int = 15

    # Maximum distinct champions produced by the stat pattern scan
    # Максимум разных чемпионов от поиска по шаблонам характеристик
    pattern_scan_limit: int = 15

    # Maximum distinct champions produced by the context window scan
    # Максимум разных чемпионов от поиска по контекстному окну
    context_scan_limit: int = 20

    # Minimum text length of an element considered by the context window scan
    # Минимальная длина текста элемента для поиска по контекстному окну
    context_min_chars: int = 20

    # Characters after a champion mention inspected by the enhancement pass
    # Сколько символов после упоминания чемпиона смотрит проход дополнения
    enhancement_window_chars: int = 200

    # Upper bound of bug fixes kept by the document-wide fallback
    # Верхняя граница исправлений, сохраняемых запасным поиском по документу
    bug_fix_limit: int = 15

    # Paragraphs kept in the overview
    # Сколько абзацев попадает в обзор
    overview_paragraphs: int = 3

    # Index page listing all patch notes articles
    # Страница-индекс со списком всех статей с патчноутами
    index_url: str = "https://www.leagueoflegends.com/en-us/news/tags/patch-notes/"

    # Direct article URL template; {slug} is the version with dots replaced by dashes
    # Шаблон прямого адреса статьи; {slug} это версия, где точки заменены дефисами
    page_url_template: str = "https://www.leagueoflegends.com/en-us/news/game-updates/patch-{slug}-notes/"

    # Prefix for relative links found on the index page
    # Префикс для относительных ссылок со страницы-индекса
    base_url: str = "https://www.leagueoflegends.com"

    # HTTP timeout in seconds / Таймаут HTTP в секундах
    request_timeout: float = 30.0

    # User-Agent header sent with every request
    # Заголовок User-Agent для каждого запроса
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )

    # How many extracted patches the caller-owned cache keeps
    # Сколько извлечённых патчей хранит кэш вызывающей стороны
    cache_capacity: int = 5


# ==============================================================================
# Environment variable overrides class
# Класс переопределений через переменные окружения
# ==============================================================================
class EnvDigestOverrides(BaseSettings):
    """
    Allows overriding configuration using environment variables.
    Позволяет переопределять конфигурацию через переменные окружения.

    Example: Set DIGEST_REQUEST_TIMEOUT=10 to shorten HTTP waits.
    Пример: Установите DIGEST_REQUEST_TIMEOUT=10, чтобы сократить ожидание HTTP.
    """

    model_config = SettingsConfigDict(
        # All environment variables must start with "DIGEST_"
        # Все переменные окружения должны начинаться с "DIGEST_"
        env_prefix="DIGEST_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Optional overrides (None = keep the value from YAML / defaults)
    # Опциональные переопределения (None = оставить значение из YAML / по умолчанию)
    section_walk_limit: Optional[int] = None
    item_walk_limit: Optional[int] = None
    champion_block_limit: Optional[int] = None
    pattern_scan_limit: Optional[int] = None
    context_scan_limit: Optional[int] = None
    context_min_chars: Optional[int] = None
    enhancement_window_chars: Optional[int] = None
    bug_fix_limit: Optional[int] = None
    overview_paragraphs: Optional[int] = None
    index_url: Optional[str] = None
    page_url_template: Optional[str] = None
    base_url: Optional[str] = None
    request_timeout: Optional[float] = None
    user_agent: Optional[str] = None
    cache_capacity: Optional[int] = None


# ==============================================================================
# Helper function to find the default configuration file
# Вспомогательная функция для поиска файла конфигурации по умолчанию
# ==============================================================================
def resolve_configs_file(name: str) -> Path:
    """
    Find configs/<name> by searching upward from the current file.
    Найти configs/<name>, поднимаясь вверх от текущего файла.
    """
    start = Path(__file__).resolve()
    for p in [start] + list(start.parents):
        cand = p / "configs" / name
        if cand.exists():
            return cand

    # Fallback: repository root is three levels above src/patch_digest/core
    # Резервный вариант: корень репозитория на три уровня выше src/patch_digest/core
    try:
        root = Path(__file__).resolve().parents[3]
        return root / "configs" / name
    except IndexError:
        return Path("configs") / name


# Default path to the configuration file
# Путь по умолчанию к конфигурационному файлу
DEFAULT_CONFIG_PATH = resolve_configs_file("patch_digest.yaml")


# ==============================================================================
# Main function to load and merge configuration
# Основная функция для загрузки и объединения конфигурации
# ==============================================================================
def load_digest_config(path: Optional[str | Path] = None) -> DigestConfig:
    """
    Load configuration from YAML file and apply environment variable overrides.
    Загрузить конфигурацию из YAML-файла и применить переопределения из окружения.

    Priority / Приоритет (highest to lowest / от высшего к низшему):
        1. Environment variables (DIGEST_*) / Переменные окружения (DIGEST_*)
        2. YAML file settings / Настройки из YAML-файла
        3. Default values in DigestConfig / Значения по умолчанию в DigestConfig
    """
    file_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    # Relative paths are looked up next to the nearest parent that has them
    # Относительные пути ищем относительно ближайшего родителя, где они есть
    if not file_path.is_absolute():
        for p in [Path(__file__).resolve()] + list(Path(__file__).resolve().parents):
            cand = p / file_path
            if cand.exists():
                file_path = cand
                break

    if not file_path.exists():
        logger.warning("Config file not found, using defaults: %s", file_path)
        data = {}
    else:
        logger.debug("Loading config from %s", file_path)
        with file_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    # Take the 'digest' section, or the whole dict if there is no section
    # Берём секцию 'digest' или весь словарь, если секции нет
    params = data.get("digest", data) if isinstance(data, dict) else {}
    cfg = DigestConfig(**params)

    override_dict = EnvDigestOverrides().model_dump(exclude_none=True)
    if override_dict:
        logger.debug("Applying environment overrides: %s", sorted(override_dict))
        cfg = cfg.model_copy(update=override_dict)

    return cfg
