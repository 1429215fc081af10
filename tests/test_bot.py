"""Tests for the Telegram bot handlers, driven with mocked aiogram objects."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramAPIError

from app.bot import handlers
from app.schemas import GameMetadata, SettingsUpdate, TelegramIdentity
from conftest import ADMIN_ID

WEBAPP_URL = "https://example.org/app"


def run(coro):
    return asyncio.run(coro)


def _tg_user(user_id, first_name="Alice", username=None):
    return SimpleNamespace(
        id=user_id,
        first_name=first_name,
        last_name=None,
        username=username,
        language_code="en",
        is_premium=False,
    )


def _message(user_id, **kwargs):
    message = MagicMock()
    message.from_user = _tg_user(user_id, **kwargs)
    message.answer = AsyncMock()
    return message


def _callback(user_id, data, text="⏳ Alice"):
    callback = MagicMock()
    callback.data = data
    callback.from_user = _tg_user(user_id)
    callback.answer = AsyncMock()
    callback.message = MagicMock()
    callback.message.text = text
    callback.message.html_text = text
    callback.message.answer = AsyncMock()
    callback.message.edit_text = AsyncMock()
    return callback


def _bot():
    bot = MagicMock()
    bot.send_message = AsyncMock()
    return bot


def _sent_texts(mock):
    return [call.args[0] for call in mock.await_args_list]


class TestStart:
    def test_pending_user_waits_and_admins_are_notified(self, accounts):
        bot = _bot()
        message = _message(42, username="alice")

        run(handlers.cmd_start(message, bot, accounts, WEBAPP_URL))

        assert accounts.get(42).status == "pending"
        assert "⏳" in _sent_texts(message.answer)[0]
        bot.send_message.assert_awaited_once()
        admin_id, text = bot.send_message.await_args.args
        assert admin_id == ADMIN_ID
        assert "@alice" in text
        markup = bot.send_message.await_args.kwargs["reply_markup"]
        callbacks = [button.callback_data for button in markup.inline_keyboard[0]]
        assert callbacks == ["approve_42", "reject_42"]

    def test_user_supplied_names_are_escaped(self, accounts):
        bot = _bot()
        run(handlers.cmd_start(_message(42, first_name="<b>evil</b>"), bot, accounts, WEBAPP_URL))
        _, text = bot.send_message.await_args.args
        assert "<b>evil</b>" not in text
        assert "&lt;b&gt;evil&lt;/b&gt;" in text

    def test_failed_admin_notification_is_logged(self, accounts, caplog):
        bot = _bot()
        bot.send_message.side_effect = TelegramAPIError(method=MagicMock(), message="chat not found")
        message = _message(42)

        run(handlers.cmd_start(message, bot, accounts, WEBAPP_URL))

        message.answer.assert_awaited_once()
        assert "Failed to notify admin" in caplog.text

    def test_approved_user_gets_menu(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        accounts.approve(42, ADMIN_ID)
        message = _message(42)

        run(handlers.cmd_start(message, _bot(), accounts, WEBAPP_URL))

        markup = message.answer.await_args.kwargs["reply_markup"]
        assert markup.inline_keyboard[0][0].web_app.url == WEBAPP_URL
        assert all(button.callback_data != "admin_panel" for row in markup.inline_keyboard for button in row)

    def test_admin_menu_has_admin_button(self, accounts):
        message = _message(ADMIN_ID)
        run(handlers.cmd_start(message, _bot(), accounts, WEBAPP_URL))
        markup = message.answer.await_args.kwargs["reply_markup"]
        assert markup.inline_keyboard[-1][0].callback_data == "admin_panel"

    def test_banned_user(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        accounts.ban(42, ADMIN_ID)
        bot = _bot()
        message = _message(42)

        run(handlers.cmd_start(message, bot, accounts, WEBAPP_URL))

        assert _sent_texts(message.answer) == ["🚫 Вы заблокированы."]
        bot.send_message.assert_not_awaited()


class TestApprovalCallbacks:
    def test_admin_approves_and_user_is_notified(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        bot = _bot()
        callback = _callback(ADMIN_ID, "approve_42")

        run(handlers.cb_approve(callback, bot, accounts, WEBAPP_URL))

        assert accounts.get(42).status == "approved"
        assert "ОДОБРЕНО" in callback.message.edit_text.await_args.args[0]
        user_id, text = bot.send_message.await_args.args
        assert user_id == 42
        assert text.startswith("✅")

    def test_admin_rejects(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        bot = _bot()
        run(handlers.cb_reject(_callback(ADMIN_ID, "reject_42"), bot, accounts, WEBAPP_URL))
        assert accounts.get(42).status == "rejected"
        assert bot.send_message.await_args.args[1].startswith("❌")

    def test_non_admin_is_refused(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        accounts.get_or_create(TelegramIdentity(id=43))
        callback = _callback(43, "approve_42")

        run(handlers.cb_approve(callback, _bot(), accounts, WEBAPP_URL))

        assert accounts.get(42).status == "pending"
        assert callback.answer.await_args.kwargs["show_alert"] is True

    def test_disallowed_transition_is_reported(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        accounts.reject(42, ADMIN_ID)
        bot = _bot()
        callback = _callback(ADMIN_ID, "approve_42")

        run(handlers.cb_approve(callback, bot, accounts, WEBAPP_URL))

        assert accounts.get(42).status == "rejected"
        callback.message.edit_text.assert_not_awaited()
        bot.send_message.assert_not_awaited()

    def test_unknown_user(self, accounts):
        callback = _callback(ADMIN_ID, "approve_999")
        run(handlers.cb_approve(callback, _bot(), accounts, WEBAPP_URL))
        assert callback.answer.await_args.args[0] == "Пользователь не найден"

    def test_errors_use_admin_language(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=ADMIN_ID))
        accounts.update_settings(ADMIN_ID, SettingsUpdate(language="en"))
        callback = _callback(ADMIN_ID, "approve_999")
        run(handlers.cb_approve(callback, _bot(), accounts, WEBAPP_URL))
        assert callback.answer.await_args.args[0] == "User not found"

        accounts.get_or_create(TelegramIdentity(id=42))
        accounts.reject(42, ADMIN_ID)
        callback = _callback(ADMIN_ID, "approve_42")
        run(handlers.cb_approve(callback, _bot(), accounts, WEBAPP_URL))
        assert callback.answer.await_args.args[0] == "⛔ This status change is not allowed"

        message = _message(ADMIN_ID)
        run(handlers.cmd_admin_ban(message, SimpleNamespace(args="x"), _bot(), accounts))
        assert _sent_texts(message.answer) == ["Usage: /admin_ban &lt;user_id&gt;"]


class TestSettings:
    def test_set_language(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        callback = _callback(42, "set_lang_en")
        run(handlers.cb_set_language(callback, accounts))
        assert accounts.get(42).language == "en"
        callback.message.edit_text.assert_awaited_once_with("✅ Language changed!")

    def test_set_theme_keeps_language(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        accounts.update_settings(42, SettingsUpdate(language="en"))
        callback = _callback(42, "set_theme_light")
        run(handlers.cb_set_theme(callback, accounts))
        user = accounts.get(42)
        assert (user.language, user.theme) == ("en", "light")
        callback.message.edit_text.assert_awaited_once_with("☀️ Light theme enabled")

    def test_help_uses_user_language(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        accounts.update_settings(42, SettingsUpdate(language="en"))
        message = _message(42)
        run(handlers.cmd_help(message, accounts))
        assert "This app allows you to" in _sent_texts(message.answer)[0]


class TestGames:
    def test_lists_games_with_formatted_numbers(self, accounts, watchlist_service):
        accounts.get_or_create(TelegramIdentity(id=42))
        user = accounts.approve(42, ADMIN_ID)
        metadata = GameMetadata(
            name="Obby & Co", visits=1_500_000, playing=1200, up_votes=90, down_votes=10
        )
        watchlist_service.add(user, 999, metadata)
        message = _message(42)

        run(handlers.cmd_games(message, accounts, watchlist_service))

        text = _sent_texts(message.answer)[0]
        assert "Obby &amp; Co" in text
        assert "1.5M" in text
        assert "1.2K" in text
        assert "90%" in text

    def test_pending_user_is_refused(self, accounts, watchlist_service):
        message = _message(42)
        run(handlers.cmd_games(message, accounts, watchlist_service))
        assert _sent_texts(message.answer) == ["⚠️ У вас нет доступа. Ожидайте одобрения."]


class TestAdminCommands:
    def test_stats_only_for_admins(self, accounts):
        message = _message(42)
        run(handlers.cmd_admin(message, accounts))
        message.answer.assert_not_awaited()

        message = _message(ADMIN_ID)
        run(handlers.cmd_admin(message, accounts))
        assert "Всего пользователей" in _sent_texts(message.answer)[0]

    def test_pending_list(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        accounts.get_or_create(TelegramIdentity(id=43))
        message = _message(ADMIN_ID)
        run(handlers.cmd_admin_pending(message, accounts))
        assert message.answer.await_count == 2

    def test_ban_and_unban(self, accounts):
        accounts.get_or_create(TelegramIdentity(id=42))
        bot = _bot()

        run(handlers.cmd_admin_ban(_message(ADMIN_ID), SimpleNamespace(args="42"), bot, accounts))
        assert accounts.get(42).status == "banned"

        run(handlers.cmd_admin_unban(_message(ADMIN_ID), SimpleNamespace(args=" 42 "), bot, accounts))
        assert accounts.get(42).status == "approved"
        assert bot.send_message.await_count == 2

    @pytest.mark.parametrize("args", [None, "", "abc"])
    def test_ban_usage(self, accounts, args):
        message = _message(ADMIN_ID)
        run(handlers.cmd_admin_ban(message, SimpleNamespace(args=args), _bot(), accounts))
        assert _sent_texts(message.answer)[0].startswith("Использование")


def test_dispatcher_carries_services():
    accounts, watchlist_service = MagicMock(), MagicMock()
    dp = handlers.build_dispatcher(accounts, watchlist_service, WEBAPP_URL)
    assert dp["accounts"] is accounts
    assert dp["watchlist"] is watchlist_service
    assert dp["webapp_url"] == WEBAPP_URL
