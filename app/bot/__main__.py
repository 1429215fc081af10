import asyncio
import logging

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from ..core.cache import cache_client
from ..core.config import ADMIN_USER_IDS, BOT_TOKEN, LOG_LEVEL, WEBAPP_URL
from ..services.accounts import AccountService
from ..services.roblox import roblox_client
from ..services.watchlist import WatchlistService
from ..stores import open_storage
from .handlers import build_dispatcher

logger = logging.getLogger(__name__)


async def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not BOT_TOKEN:
        raise SystemExit("BOT_TOKEN is not set")
    if not ADMIN_USER_IDS:
        logger.warning("ADMIN_USER_IDS is empty; nobody can approve new users")

    cache_client.connect()
    storage = open_storage()
    accounts = AccountService(storage.users, storage.watchlist, ADMIN_USER_IDS)
    watchlist = WatchlistService(storage.watchlist, roblox_client)
    bot = Bot(BOT_TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = build_dispatcher(accounts, watchlist, WEBAPP_URL)

    print(f"Roblox Game Stats bot polling (storage={storage.backend}, admins={len(ADMIN_USER_IDS)})")
    try:
        await dp.start_polling(bot)
    finally:
        storage.close()
        cache_client.disconnect()
        await bot.session.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
