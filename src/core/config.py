"""Runtime configuration, read from the environment (and a local .env file if there is one)"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv

DEFAULT_EMOJIS = ("👍", "😂", "😮", "😢", "😡", "🎉")


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str | None) -> tuple[str, ...]:
    """Comma separated, surrounding spaces and empty items dropped"""
    if value is None:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    # In-memory by default: the archive only lives as long as the process
    database_url: str = "sqlite:///:memory:"
    log_level: str = "INFO"
    chat_reject_duplicates: bool = True
    nickname_max_length: int = 20
    allowed_emojis: tuple[str, ...] = field(default=DEFAULT_EMOJIS)

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))
        return cls(
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", cls.port)),
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            chat_reject_duplicates=_as_bool(
                os.getenv("CHAT_REJECT_DUPLICATES"), cls.chat_reject_duplicates
            ),
            nickname_max_length=int(
                os.getenv("NICKNAME_MAX_LENGTH", cls.nickname_max_length)
            ),
            allowed_emojis=_as_list(os.getenv("ALLOWED_EMOJIS")) or DEFAULT_EMOJIS,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
