import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


@dataclass
class Settings:
    bot_token: str
    budget_tracking: bool
    currency_symbol: str
    unknown_command_help: bool
    bot_username: str | None
    log_level: str
    webhook_domain: str | None
    webhook_secret: str | None
    port: int


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


def get_settings() -> Settings:
    raw_port = os.getenv("PORT", "") or "8000"
    try:
        port = int(raw_port)
    except ValueError:
        port = 8000

    bot_username = os.getenv("BOT_USERNAME", "").strip().lstrip("@") or None

    return Settings(
        bot_token=os.getenv("BOT_TOKEN", ""),
        budget_tracking=_env_flag("BUDGET_TRACKING", True),
        currency_symbol=os.getenv("CURRENCY_SYMBOL", "₹"),
        unknown_command_help=_env_flag("UNKNOWN_COMMAND_HELP", False),
        bot_username=bot_username,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        webhook_domain=os.getenv("WEBHOOK_DOMAIN"),
        webhook_secret=os.getenv("WEBHOOK_SECRET"),
        port=port,
    )
