import asyncio
import logging

from aiogram import Bot, Dispatcher, Router, types, F
from aiogram.types import BotCommand
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web

from bot_config import Settings, get_settings
from commands import BotIdentity, CommandProcessor
from ledger import LedgerStore


settings = get_settings()

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

router = Router()


@router.message(F.text)
async def on_text(message: types.Message, processor: CommandProcessor) -> None:
    reply = await processor.handle(message.chat.id, message.text)
    await message.answer(reply)


def make_bot_identity(bot: Bot, cfg: Settings) -> BotIdentity:
    async def bot_identity() -> str:
        if cfg.bot_username:
            return cfg.bot_username
        me = await bot.get_me()
        return me.username or ""

    return bot_identity


def build_processor(bot: Bot, cfg: Settings) -> CommandProcessor:
    return CommandProcessor(
        LedgerStore(),
        make_bot_identity(bot, cfg),
        budget_tracking=cfg.budget_tracking,
        currency_symbol=cfg.currency_symbol,
        unknown_command_help=cfg.unknown_command_help,
    )


def build_dispatcher(processor: CommandProcessor) -> Dispatcher:
    dp = Dispatcher(processor=processor)
    dp.include_router(router)
    return dp


async def set_bot_commands(bot: Bot, processor: CommandProcessor) -> None:
    commands = [
        BotCommand(command=name, description=description)
        for name, description in processor.bot_commands()
    ]
    await bot.set_my_commands(commands)


async def run_polling() -> None:
    if not settings.bot_token:
        raise RuntimeError("BOT_TOKEN is not set")

    bot = Bot(token=settings.bot_token)
    processor = build_processor(bot, settings)
    dp = build_dispatcher(processor)

    await set_bot_commands(bot, processor)

    logger.info(
        "Starting bot in polling mode (budget tracking %s)...",
        "on" if settings.budget_tracking else "off",
    )
    await dp.start_polling(bot)


async def run_webhook() -> None:
    if not settings.bot_token:
        raise RuntimeError("BOT_TOKEN is not set")
    if not settings.webhook_domain:
        raise RuntimeError("WEBHOOK_DOMAIN is not configured")

    bot = Bot(token=settings.bot_token)
    processor = build_processor(bot, settings)
    dp = build_dispatcher(processor)

    await set_bot_commands(bot, processor)

    app = web.Application()
    webhook_path = f"/webhook/{settings.bot_token}"
    SimpleRequestHandler(
        dispatcher=dp, bot=bot, secret_token=settings.webhook_secret
    ).register(app, path=webhook_path)
    setup_application(app, dp, bot=bot)

    webhook_url = settings.webhook_domain.rstrip("/") + webhook_path
    await bot.set_webhook(url=webhook_url, secret_token=settings.webhook_secret)
    logger.info("Webhook set to %s", webhook_url)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", settings.port)
    logger.info("Listening on port %s", settings.port)
    await site.start()

    while True:
        await asyncio.sleep(3600)


async def main() -> None:
    if settings.webhook_domain:
        await run_webhook()
    else:
        await run_polling()


if __name__ == "__main__":
    asyncio.run(main())
