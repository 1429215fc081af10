from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup, WebAppInfo
from aiogram.utils.keyboard import InlineKeyboardBuilder

from ..core.config import DEFAULT_LANGUAGE
from .messages import t


def open_app_keyboard(lang: str, webapp_url: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=t(lang, "open_app"), web_app=WebAppInfo(url=webapp_url))]
        ]
    )


def main_menu_keyboard(lang: str, webapp_url: str, is_admin: bool) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text=t(lang, "open_app"), web_app=WebAppInfo(url=webapp_url)))
    builder.row(
        InlineKeyboardButton(text=t(lang, "settings"), callback_data="settings"),
        InlineKeyboardButton(text=t(lang, "help"), callback_data="help"),
    )
    if is_admin:
        builder.row(InlineKeyboardButton(text=t(lang, "admin"), callback_data="admin_panel"))
    return builder.as_markup()


def help_keyboard(lang: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text=t(lang, "help"), callback_data="help")]]
    )


def approval_keyboard(user_id: int, lang: str = DEFAULT_LANGUAGE) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text=t(lang, "btn_approve"), callback_data=f"approve_{user_id}"),
                InlineKeyboardButton(text=t(lang, "btn_reject"), callback_data=f"reject_{user_id}"),
            ]
        ]
    )


def settings_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🌍 Язык / Language", callback_data="change_language")],
            [InlineKeyboardButton(text="🌙 Тема / Theme", callback_data="change_theme")],
        ]
    )


def language_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🇷🇺 Русский", callback_data="set_lang_ru")],
            [InlineKeyboardButton(text="🇬🇧 English", callback_data="set_lang_en")],
        ]
    )


def theme_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🌙 Тёмная / Dark", callback_data="set_theme_dark")],
            [InlineKeyboardButton(text="☀️ Светлая / Light", callback_data="set_theme_light")],
        ]
    )


def admin_panel_keyboard(lang: str = DEFAULT_LANGUAGE) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=t(lang, "btn_pending"), callback_data="admin_pending")],
            [InlineKeyboardButton(text=t(lang, "btn_users"), callback_data="admin_users")],
            [InlineKeyboardButton(text=t(lang, "btn_refresh"), callback_data="admin_panel")],
        ]
    )
