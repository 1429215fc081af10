from __future__ import annotations

import asyncio
import logging
from html import escape
from typing import Optional

from aiogram import Bot, Dispatcher, F, Router
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import CallbackQuery, Message, User

from ..core.errors import Forbidden, NotFound
from ..schemas import SettingsUpdate, TelegramIdentity, UserOut
from ..services.accounts import AccountService
from ..services.formatting import format_number, rating_percent
from ..services.watchlist import WatchlistService
from .keyboards import (
    admin_panel_keyboard,
    approval_keyboard,
    help_keyboard,
    language_keyboard,
    main_menu_keyboard,
    open_app_keyboard,
    settings_keyboard,
    theme_keyboard,
)
from .messages import STATUS_EMOJI, t

logger = logging.getLogger(__name__)

router = Router(name="roblox_stats")

PENDING_PREVIEW_LIMIT = 10
USERS_PREVIEW_LIMIT = 20

# Store calls block (SQL sessions, file writes), so they run off the event loop.
_run = asyncio.to_thread


def identity_from(tg_user: User) -> TelegramIdentity:
    return TelegramIdentity(
        id=tg_user.id,
        first_name=getattr(tg_user, "first_name", None),
        last_name=getattr(tg_user, "last_name", None),
        username=getattr(tg_user, "username", None),
        language_code=getattr(tg_user, "language_code", None),
        is_premium=bool(getattr(tg_user, "is_premium", False)),
    )


def display_name(user: UserOut) -> str:
    name = " ".join(part for part in (user.first_name, user.last_name) if part) or str(user.id)
    if user.username:
        name = f"{name} (@{user.username})"
    return escape(name)


def _parse_user_id(value: Optional[str]) -> Optional[int]:
    value = (value or "").strip()
    if not value.isdigit():
        return None
    return int(value)


async def notify_admins(bot: Bot, accounts: AccountService, user: UserOut) -> None:
    for admin_id in sorted(accounts.admin_ids):
        lang = await _run(accounts.language_of, admin_id)
        text = f"{t(lang, 'new_request')}\n\n👤 {display_name(user)}\n🆔 <code>{user.id}</code>"
        try:
            await bot.send_message(admin_id, text, reply_markup=approval_keyboard(user.id, lang))
        except TelegramAPIError:
            logger.exception("Failed to notify admin %s about user %s", admin_id, user.id)


async def notify_user(bot: Bot, user_id: int, text: str, reply_markup=None) -> None:
    try:
        await bot.send_message(user_id, text, reply_markup=reply_markup)
    except TelegramAPIError:
        logger.exception("Failed to notify user %s", user_id)


def _stats_text(lang: str, accounts: AccountService) -> str:
    stats = accounts.stats()
    return (
        f"{t(lang, 'admin_title')}\n\n"
        f"{t(lang, 'stats_total')}: {stats.total_users}\n"
        f"{t(lang, 'stats_approved')}: {stats.approved_users}\n"
        f"{t(lang, 'stats_pending')}: {stats.pending_users}\n"
        f"{t(lang, 'stats_rejected')}: {stats.rejected_users}\n"
        f"{t(lang, 'stats_banned')}: {stats.banned_users}\n"
        f"{t(lang, 'stats_games')}: {stats.total_games}"
    )


def _users_text(lang: str, accounts: AccountService) -> str:
    users = accounts.list_users(limit=USERS_PREVIEW_LIMIT)
    if not users:
        return t(lang, "no_users")
    lines = [t(lang, "users_title"), ""]
    for user in users:
        lines.append(f"{STATUS_EMOJI.get(user.status, '')} {display_name(user)} <code>{user.id}</code>")
    return "\n".join(lines)


def _games_text(lang: str, games) -> str:
    if not games:
        return t(lang, "no_games")
    lines = [t(lang, "games_title"), ""]
    for game in games:
        line = (
            f"• <b>{escape(game.name or str(game.external_game_id))}</b>\n"
            f"  👁 {format_number(game.visits)} {t(lang, 'visits')} · "
            f"🟢 {format_number(game.playing)} {t(lang, 'playing')}"
        )
        rating = rating_percent(game.up_votes, game.down_votes)
        if rating is not None:
            line += f" · 👍 {rating}% {t(lang, 'rating')}"
        lines.append(line)
    return "\n".join(lines)


async def _send_pending(message: Message, lang: str, accounts: AccountService) -> None:
    pending = await _run(accounts.list_users, status="pending", limit=PENDING_PREVIEW_LIMIT)
    if not pending:
        await message.answer(t(lang, "no_pending"))
        return
    for user in pending:
        await message.answer(
            f"⏳ {display_name(user)}\n🆔 <code>{user.id}</code>",
            reply_markup=approval_keyboard(user.id, lang),
        )


@router.message(CommandStart())
async def cmd_start(message: Message, bot: Bot, accounts: AccountService, webapp_url: str):
    user = await _run(accounts.get_or_create, identity_from(message.from_user))
    lang = user.language

    if user.status == "pending":
        await message.answer(
            f"{t(lang, 'welcome')}\n\n{t(lang, 'wait_approval')}",
            reply_markup=help_keyboard(lang),
        )
        await notify_admins(bot, accounts, user)
        return
    if user.status in ("rejected", "banned"):
        await message.answer(t(lang, user.status))
        return

    await message.answer(
        t(lang, "welcome"),
        reply_markup=main_menu_keyboard(lang, webapp_url, accounts.is_admin(user.id)),
    )


@router.message(Command("app"))
async def cmd_app(message: Message, accounts: AccountService, webapp_url: str):
    user = await _run(accounts.get_or_create, identity_from(message.from_user))
    if user.status != "approved":
        await message.answer(t(user.language, "not_approved"))
        return
    await message.answer(
        t(user.language, "open_app"),
        reply_markup=open_app_keyboard(user.language, webapp_url),
    )


@router.message(Command("help"))
async def cmd_help(message: Message, accounts: AccountService):
    lang = await _run(accounts.language_of, message.from_user.id)
    await message.answer(t(lang, "help_text"))


@router.callback_query(F.data == "help")
async def cb_help(callback: CallbackQuery, accounts: AccountService):
    lang = await _run(accounts.language_of, callback.from_user.id)
    await callback.answer()
    await callback.message.answer(t(lang, "help_text"))


@router.message(Command("settings"))
async def cmd_settings(message: Message, accounts: AccountService):
    lang = await _run(accounts.language_of, message.from_user.id)
    await message.answer(t(lang, "settings"), reply_markup=settings_keyboard())


@router.callback_query(F.data == "settings")
async def cb_settings(callback: CallbackQuery, accounts: AccountService):
    lang = await _run(accounts.language_of, callback.from_user.id)
    await callback.answer()
    await callback.message.answer(t(lang, "settings"), reply_markup=settings_keyboard())


@router.callback_query(F.data == "change_language")
async def cb_change_language(callback: CallbackQuery, accounts: AccountService):
    lang = await _run(accounts.language_of, callback.from_user.id)
    await callback.answer()
    await callback.message.edit_text(t(lang, "choose_language"), reply_markup=language_keyboard())


@router.callback_query(F.data == "change_theme")
async def cb_change_theme(callback: CallbackQuery, accounts: AccountService):
    lang = await _run(accounts.language_of, callback.from_user.id)
    await callback.answer()
    await callback.message.edit_text(t(lang, "choose_theme"), reply_markup=theme_keyboard())


def _apply_settings(accounts: AccountService, tg_user: User, update: SettingsUpdate) -> UserOut:
    accounts.get_or_create(identity_from(tg_user))
    return accounts.update_settings(tg_user.id, update)


@router.callback_query(F.data.in_({"set_lang_ru", "set_lang_en"}))
async def cb_set_language(callback: CallbackQuery, accounts: AccountService):
    language = callback.data.rsplit("_", 1)[1]
    user = await _run(_apply_settings, accounts, callback.from_user, SettingsUpdate(language=language))
    await callback.answer(t(user.language, "language_changed"))
    await callback.message.edit_text(t(user.language, "language_changed"))


@router.callback_query(F.data.in_({"set_theme_dark", "set_theme_light"}))
async def cb_set_theme(callback: CallbackQuery, accounts: AccountService):
    theme = callback.data.rsplit("_", 1)[1]
    user = await _run(_apply_settings, accounts, callback.from_user, SettingsUpdate(theme=theme))
    text = t(user.language, f"theme_{user.theme}")
    await callback.answer(text)
    await callback.message.edit_text(text)


@router.message(Command("games"))
async def cmd_games(message: Message, accounts: AccountService, watchlist: WatchlistService):
    user = await _run(accounts.get_or_create, identity_from(message.from_user))
    if user.status != "approved":
        await message.answer(t(user.language, "not_approved"))
        return
    games = await _run(watchlist.list, user)
    await message.answer(_games_text(user.language, games))


async def _decide(
    callback: CallbackQuery,
    bot: Bot,
    accounts: AccountService,
    webapp_url: str,
    approve: bool,
) -> None:
    admin_id = callback.from_user.id
    lang = await _run(accounts.language_of, admin_id)
    if not accounts.is_admin(admin_id):
        await callback.answer(t(lang, "no_access"), show_alert=True)
        return
    target_id = _parse_user_id(callback.data.split("_", 1)[1])
    if target_id is None:
        await callback.answer(t(lang, "invalid_request"), show_alert=True)
        return

    try:
        if approve:
            user = await _run(accounts.approve, target_id, admin_id)
        else:
            user = await _run(accounts.reject, target_id, admin_id)
    except NotFound:
        await callback.answer(t(lang, "user_not_found"), show_alert=True)
        return
    except Forbidden:
        await callback.answer(t(lang, "status_forbidden"), show_alert=True)
        return

    marker = t(lang, "marker_approved" if approve else "marker_rejected")
    await callback.answer(marker)
    original = callback.message.html_text if callback.message.text else ""
    await callback.message.edit_text(f"{original}\n\n{marker}".strip())

    user_lang = user.language
    if approve:
        await notify_user(
            bot,
            user.id,
            t(user_lang, "approved"),
            reply_markup=main_menu_keyboard(user_lang, webapp_url, accounts.is_admin(user.id)),
        )
    else:
        await notify_user(bot, user.id, t(user_lang, "rejected"))


@router.callback_query(F.data.startswith("approve_"))
async def cb_approve(callback: CallbackQuery, bot: Bot, accounts: AccountService, webapp_url: str):
    await _decide(callback, bot, accounts, webapp_url, approve=True)


@router.callback_query(F.data.startswith("reject_"))
async def cb_reject(callback: CallbackQuery, bot: Bot, accounts: AccountService, webapp_url: str):
    await _decide(callback, bot, accounts, webapp_url, approve=False)


async def _admin_callback_lang(callback: CallbackQuery, accounts: AccountService) -> Optional[str]:
    lang = await _run(accounts.language_of, callback.from_user.id)
    if not accounts.is_admin(callback.from_user.id):
        await callback.answer(t(lang, "no_access"), show_alert=True)
        return None
    await callback.answer()
    return lang


@router.callback_query(F.data == "admin_panel")
async def cb_admin_panel(callback: CallbackQuery, accounts: AccountService):
    lang = await _admin_callback_lang(callback, accounts)
    if lang is None:
        return
    text = await _run(_stats_text, lang, accounts)
    await callback.message.answer(text, reply_markup=admin_panel_keyboard(lang))


@router.callback_query(F.data == "admin_pending")
async def cb_admin_pending(callback: CallbackQuery, accounts: AccountService):
    lang = await _admin_callback_lang(callback, accounts)
    if lang is None:
        return
    await _send_pending(callback.message, lang, accounts)


@router.callback_query(F.data == "admin_users")
async def cb_admin_users(callback: CallbackQuery, accounts: AccountService):
    lang = await _admin_callback_lang(callback, accounts)
    if lang is None:
        return
    await callback.message.answer(await _run(_users_text, lang, accounts))


@router.message(Command("admin", "admin_stats"))
async def cmd_admin(message: Message, accounts: AccountService):
    if not accounts.is_admin(message.from_user.id):
        return
    lang = await _run(accounts.language_of, message.from_user.id)
    text = await _run(_stats_text, lang, accounts)
    await message.answer(text, reply_markup=admin_panel_keyboard(lang))


@router.message(Command("admin_pending"))
async def cmd_admin_pending(message: Message, accounts: AccountService):
    if not accounts.is_admin(message.from_user.id):
        return
    lang = await _run(accounts.language_of, message.from_user.id)
    await _send_pending(message, lang, accounts)


async def _change_ban(message: Message, command: CommandObject, bot: Bot, accounts: AccountService, ban: bool):
    admin_id = message.from_user.id
    if not accounts.is_admin(admin_id):
        return
    lang = await _run(accounts.language_of, admin_id)
    target_id = _parse_user_id(command.args)
    if target_id is None:
        await message.answer(t(lang, "usage_ban" if ban else "usage_unban"))
        return

    try:
        if ban:
            user = await _run(accounts.ban, target_id, admin_id)
        else:
            user = await _run(accounts.unban, target_id, admin_id)
    except NotFound:
        await message.answer(t(lang, "user_not_found"))
        return
    except Forbidden:
        await message.answer(t(lang, "status_forbidden"))
        return

    await message.answer(f"{STATUS_EMOJI[user.status]} {display_name(user)}: {user.status}")
    await notify_user(bot, user.id, t(user.language, "banned" if ban else "approved"))


@router.message(Command("admin_ban"))
async def cmd_admin_ban(message: Message, command: CommandObject, bot: Bot, accounts: AccountService):
    await _change_ban(message, command, bot, accounts, ban=True)


@router.message(Command("admin_unban"))
async def cmd_admin_unban(message: Message, command: CommandObject, bot: Bot, accounts: AccountService):
    await _change_ban(message, command, bot, accounts, ban=False)


def build_dispatcher(accounts: AccountService, watchlist: WatchlistService, webapp_url: str) -> Dispatcher:
    dp = Dispatcher()
    dp["accounts"] = accounts
    dp["watchlist"] = watchlist
    dp["webapp_url"] = webapp_url
    dp.include_router(router)
    return dp
