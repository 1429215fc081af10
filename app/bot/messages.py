from __future__ import annotations

from ..core.config import DEFAULT_LANGUAGE

MESSAGES = {
    "ru": {
        "welcome": "👋 Добро пожаловать в Roblox Game Stats!",
        "wait_approval": "⏳ Ваша заявка отправлена на рассмотрение.\nОжидайте одобрения администратора.",
        "approved": "✅ Ваш аккаунт одобрен! Теперь вы можете использовать бота.",
        "rejected": "❌ К сожалению, ваша заявка отклонена.",
        "banned": "🚫 Вы заблокированы.",
        "not_approved": "⚠️ У вас нет доступа. Ожидайте одобрения.",
        "open_app": "🎮 Открыть приложение",
        "help": "❓ Помощь",
        "settings": "⚙️ Настройки",
        "admin": "👑 Админ панель",
        "help_text": (
            "📖 <b>Roblox Game Stats</b>\n\n"
            "Это приложение позволяет:\n"
            "• 📊 Просматривать статистику игр Roblox\n"
            "• 🎮 Добавлять свои игры\n"
            "• 📈 Отслеживать посещаемость\n"
            "• ⭐ Следить за оценками\n\n"
            "<b>Команды:</b>\n"
            "/start - Начать\n"
            "/app - Открыть приложение\n"
            "/games - Мои игры\n"
            "/help - Помощь\n"
            "/settings - Настройки"
        ),
        "choose_language": "🌍 Выберите язык / Choose language:",
        "choose_theme": "🎨 Выберите тему / Choose theme:",
        "language_changed": "✅ Язык изменён!",
        "theme_dark": "🌙 Тёмная тема активирована",
        "theme_light": "☀️ Светлая тема активирована",
        "no_games": "🎮 Вы ещё не добавили ни одной игры. Откройте приложение, чтобы добавить.",
        "games_title": "🎮 <b>Мои игры</b>",
        "visits": "посещений",
        "playing": "играют",
        "no_access": "⛔ Нет доступа",
        "rating": "рейтинг",
        "user_not_found": "Пользователь не найден",
        "invalid_request": "Некорректный запрос",
        "status_forbidden": "⛔ Такая смена статуса недоступна",
        "usage_ban": "Использование: /admin_ban &lt;user_id&gt;",
        "usage_unban": "Использование: /admin_unban &lt;user_id&gt;",
        "new_request": "🆕 <b>Новая заявка</b>",
        "marker_approved": "✅ ОДОБРЕНО",
        "marker_rejected": "❌ ОТКЛОНЕНО",
        "no_pending": "✅ Нет заявок на рассмотрении",
        "no_users": "👥 Пользователей нет",
        "users_title": "👥 <b>Пользователи</b>",
        "admin_title": "👑 <b>Админ панель</b>",
        "stats_total": "👥 Всего пользователей",
        "stats_approved": "✅ Одобрено",
        "stats_pending": "⏳ Ожидают",
        "stats_rejected": "❌ Отклонено",
        "stats_banned": "🚫 Заблокировано",
        "stats_games": "🎮 Игр в списках",
        "btn_approve": "✅ Одобрить",
        "btn_reject": "❌ Отклонить",
        "btn_pending": "📋 Заявки",
        "btn_users": "👥 Все пользователи",
        "btn_refresh": "🔄 Обновить",
    },
    "en": {
        "welcome": "👋 Welcome to Roblox Game Stats!",
        "wait_approval": "⏳ Your request has been sent for review.\nPlease wait for admin approval.",
        "approved": "✅ Your account is approved! You can now use the bot.",
        "rejected": "❌ Unfortunately, your request was rejected.",
        "banned": "🚫 You are banned.",
        "not_approved": "⚠️ Access denied. Please wait for approval.",
        "open_app": "🎮 Open App",
        "help": "❓ Help",
        "settings": "⚙️ Settings",
        "admin": "👑 Admin Panel",
        "help_text": (
            "📖 <b>Roblox Game Stats</b>\n\n"
            "This app allows you to:\n"
            "• 📊 View Roblox game statistics\n"
            "• 🎮 Add your games\n"
            "• 📈 Track player visits\n"
            "• ⭐ Monitor ratings\n\n"
            "<b>Commands:</b>\n"
            "/start - Start\n"
            "/app - Open app\n"
            "/games - My games\n"
            "/help - Help\n"
            "/settings - Settings"
        ),
        "choose_language": "🌍 Выберите язык / Choose language:",
        "choose_theme": "🎨 Выберите тему / Choose theme:",
        "language_changed": "✅ Language changed!",
        "theme_dark": "🌙 Dark theme enabled",
        "theme_light": "☀️ Light theme enabled",
        "no_games": "🎮 You have not added any games yet. Open the app to add one.",
        "games_title": "🎮 <b>My games</b>",
        "visits": "visits",
        "playing": "playing",
        "no_access": "⛔ Access denied",
        "rating": "rating",
        "user_not_found": "User not found",
        "invalid_request": "Invalid request",
        "status_forbidden": "⛔ This status change is not allowed",
        "usage_ban": "Usage: /admin_ban &lt;user_id&gt;",
        "usage_unban": "Usage: /admin_unban &lt;user_id&gt;",
        "new_request": "🆕 <b>New request</b>",
        "marker_approved": "✅ APPROVED",
        "marker_rejected": "❌ REJECTED",
        "no_pending": "✅ No pending requests",
        "no_users": "👥 No users yet",
        "users_title": "👥 <b>Users</b>",
        "admin_title": "👑 <b>Admin panel</b>",
        "stats_total": "👥 Total users",
        "stats_approved": "✅ Approved",
        "stats_pending": "⏳ Pending",
        "stats_rejected": "❌ Rejected",
        "stats_banned": "🚫 Banned",
        "stats_games": "🎮 Games tracked",
        "btn_approve": "✅ Approve",
        "btn_reject": "❌ Reject",
        "btn_pending": "📋 Requests",
        "btn_users": "👥 All users",
        "btn_refresh": "🔄 Refresh",
    },
}

STATUS_EMOJI = {
    "approved": "✅",
    "pending": "⏳",
    "rejected": "❌",
    "banned": "🚫",
}


def t(lang: str, key: str) -> str:
    table = MESSAGES.get(lang) or MESSAGES[DEFAULT_LANGUAGE]
    return table.get(key) or MESSAGES[DEFAULT_LANGUAGE].get(key) or key
