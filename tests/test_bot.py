from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from patch_digest.core.cache import PatchContentCache
from patch_digest.core.models import ChangeRecord, PatchContent
from patch_digest.interfaces.bot import _answer_patch, build_keyboard, on_details
from patch_digest.providers.patch_pages import InvalidVersionError, PatchNotFoundError


def _content() -> PatchContent:
    return PatchContent(
        version="14.1",
        title="Patch 14.1 Notes",
        url="https://example.test/patch-14-1",
        character_changes=(ChangeRecord("Ashe", ("Base AD: 60 → 65",)),),
        bug_fixes=("Fixed a bug where the shop would not open",),
    )


def test_keyboard_has_buttons_only_for_present_sections() -> None:
    keyboard = build_keyboard(_content())
    buttons = [button for row in keyboard.inline_keyboard for button in row]
    assert [b.callback_data for b in buttons if b.callback_data] == [
        "details:champions:14.1",
        "details:bugs:14.1",
    ]
    assert buttons[-1].url == "https://example.test/patch-14-1"


def test_keyboard_is_omitted_for_empty_patch() -> None:
    assert build_keyboard(PatchContent(version="14.1", title="Patch 14.1 Notes")) is None


@pytest.mark.asyncio
async def test_answer_patch_sends_summary_with_keyboard() -> None:
    message = AsyncMock()
    client = MagicMock()
    client.fetch_patch_content.return_value = _content()
    cache = PatchContentCache()

    await _answer_patch(message, client, cache, "14.1")

    client.fetch_patch_content.assert_called_once_with("14.1", cache=cache)
    text = message.answer.await_args_list[-1].args[0]
    assert "Patch 14.1 Notes" in text
    assert "📈 Ashe" in text
    assert message.answer.await_args_list[-1].kwargs["reply_markup"] is not None


@pytest.mark.asyncio
async def test_answer_patch_reports_unknown_patch() -> None:
    message = AsyncMock()
    client = MagicMock()
    client.fetch_patch_content.side_effect = PatchNotFoundError("no such patch")

    await _answer_patch(message, client, PatchContentCache(), "99.1")

    assert message.answer.await_args_list[-1].args[0] == "Не нашёл такой патч. Попробуйте /latest."


@pytest.mark.asyncio
async def test_answer_patch_reports_bad_version() -> None:
    message = AsyncMock()
    client = MagicMock()
    client.fetch_patch_content.side_effect = InvalidVersionError("bad")

    await _answer_patch(message, client, PatchContentCache(), "abc")

    assert message.answer.await_args_list[-1].args[0] == "Версия должна выглядеть как 14.1."


@pytest.mark.asyncio
async def test_details_callback_reads_cached_patch() -> None:
    cache = PatchContentCache()
    cache.put(_content())
    callback = SimpleNamespace(data="details:bugs:14.1", answer=AsyncMock(), message=AsyncMock())

    await on_details(callback, cache)

    callback.answer.assert_awaited_once()
    text = callback.message.answer.await_args_list[0].args[0]
    assert text.startswith("🐛 DETAILED BUG FIXES")
    assert "• Fixed a bug where the shop would not open" in text


@pytest.mark.asyncio
async def test_details_callback_without_cache() -> None:
    callback = SimpleNamespace(data="details:champions:14.1", answer=AsyncMock(), message=AsyncMock())

    await on_details(callback, PatchContentCache())

    assert "/latest" in callback.message.answer.await_args_list[0].args[0]


@pytest.mark.asyncio
async def test_details_callback_does_not_substitute_another_patch() -> None:
    cache = PatchContentCache()
    cache.put(PatchContent(version="14.2", title="Patch 14.2 Notes", bug_fixes=("Fixed the shop timer",)))
    callback = SimpleNamespace(data="details:bugs:14.1", answer=AsyncMock(), message=AsyncMock())

    await on_details(callback, cache)

    assert callback.message.answer.await_count == 1
    assert callback.message.answer.await_args_list[0].args[0].startswith("Данные устарели")
