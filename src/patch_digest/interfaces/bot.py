"""Telegram bot entrypoint for Patch Digest."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from aiogram import Bot, Dispatcher, F
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message
from dotenv import find_dotenv, load_dotenv

from patch_digest.core.cache import PatchContentCache
from patch_digest.core.config import load_digest_config
from patch_digest.core.formatting import format_details, format_summary, split_message
from patch_digest.core.models import PatchContent
from patch_digest.providers.patch_pages import (
    InvalidVersionError,
    PatchDigestError,
    PatchNotFoundError,
    PatchPageClient,
)

_dotenv_path = find_dotenv(filename=".env", usecwd=True)
if _dotenv_path:
    load_dotenv(_dotenv_path, override=False)

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

DETAILS_PREFIX = "details"

_BUTTONS = (
    ("champions", "Champion Details"),
    ("items", "Item Details"),
    ("bugs", "Bug Fixes"),
    ("system", "System Changes"),
)

HELP_TEXT = (
    "Привет! Я пересказываю патчноуты League of Legends.\n\n"
    "/latest — последний патч\n"
    "/patch 14.1 — конкретный патч\n"
    "/help — эта подсказка"
)

dp = Dispatcher()


def build_keyboard(content: PatchContent) -> Optional[InlineKeyboardMarkup]:
    """Кнопки только для непустых разделов и ссылка на оригинал."""
    present = {
        "champions": bool(content.character_changes),
        "items": bool(content.item_changes),
        "bugs": bool(content.bug_fixes),
        "system": bool(content.system_changes),
    }
    rows = [
        [InlineKeyboardButton(text=label, callback_data=f"{DETAILS_PREFIX}:{section}:{content.version}")]
        for section, label in _BUTTONS
        if present[section]
    ]
    if content.url:
        rows.append([InlineKeyboardButton(text="📖 Full Patch Notes", url=content.url)])
    return InlineKeyboardMarkup(inline_keyboard=rows) if rows else None


async def _load_content(client: PatchPageClient, cache: PatchContentCache, version: Optional[str]) -> PatchContent:
    # requests блокирующий, поэтому уходим в поток
    return await asyncio.to_thread(client.fetch_patch_content, version, cache=cache)


async def _send_summary(message: Message, content: PatchContent) -> None:
    chunks = split_message(format_summary(content))
    keyboard = build_keyboard(content)
    for idx, chunk in enumerate(chunks):
        markup = keyboard if idx == len(chunks) - 1 else None
        await message.answer(chunk, reply_markup=markup, disable_web_page_preview=True)


async def _answer_patch(
    message: Message,
    client: PatchPageClient,
    cache: PatchContentCache,
    version: Optional[str],
) -> None:
    await message.answer("🔍 Загружаю патчноуты…")
    try:
        content = await _load_content(client, cache, version)
    except InvalidVersionError:
        await message.answer("Версия должна выглядеть как 14.1.")
        return
    except PatchNotFoundError:
        await message.answer("Не нашёл такой патч. Попробуйте /latest.")
        return
    except PatchDigestError as exc:  # pragma: no cover - сеть
        logger.exception("Failed to fetch patch notes", exc_info=exc)
        await message.answer("Не удалось загрузить патчноуты, попробуйте позже.")
        return
    await _send_summary(message, content)


@dp.message(Command("start", "help"))
async def cmd_start(message: Message) -> None:
    await message.answer(HELP_TEXT)


@dp.message(Command("latest"))
async def cmd_latest(message: Message, client: PatchPageClient, cache: PatchContentCache) -> None:
    await _answer_patch(message, client, cache, None)


@dp.message(Command("patch"))
async def cmd_patch(
    message: Message,
    command: CommandObject,
    client: PatchPageClient,
    cache: PatchContentCache,
) -> None:
    version = (command.args or "").strip()
    if not version:
        await message.answer("Укажите версию: /patch 14.1")
        return
    await _answer_patch(message, client, cache, version)


@dp.callback_query(F.data.startswith(f"{DETAILS_PREFIX}:"))
async def on_details(callback: CallbackQuery, cache: PatchContentCache) -> None:
    _, section, version = (callback.data or "").split(":", 2)
    content = cache.get(version)
    await callback.answer()
    if callback.message is None:
        return
    if content is None:
        logger.warning("No cached content for %s details of %s", section, version)
        await callback.message.answer("Данные устарели, запросите патч заново: /latest")
        return
    for chunk in split_message(format_details(content, section)):
        await callback.message.answer(chunk, disable_web_page_preview=True)


async def _run_bot(token: str) -> None:
    settings = load_digest_config()
    cache = PatchContentCache(capacity=settings.cache_capacity)
    bot = Bot(token=token)
    with PatchPageClient(settings) as client:
        await dp.start_polling(bot, client=client, cache=cache)


def main() -> None:  # pragma: no cover
    token = os.environ.get("TELEGRAM_BOT_TOKEN")
    if not token:
        raise RuntimeError("TELEGRAM_BOT_TOKEN не задан.")
    asyncio.run(_run_bot(token))


if __name__ == "__main__":  # pragma: no cover
    main()
