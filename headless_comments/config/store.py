"""Runtime options store.

The API key, the allowed origins list and the spam checking toggle are
editable at runtime, so they live in an external key-value store (a Redis
hash) instead of the environment. Settings only provide the defaults that
are seeded on first start.
"""

import re
import secrets
import string
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from headless_comments.core.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from headless_comments.config.settings import Settings


logger = get_logger(__name__)


OPTION_API_KEY = "api_key"
OPTION_ALLOWED_ORIGINS = "allowed_origins"
OPTION_USE_SPAM_CHECK = "use_spam_check"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

API_KEY_ALPHABET = string.ascii_letters + string.digits


def generate_api_key(length: int = 32) -> str:
    """Generate an alphanumeric API key."""
    return "".join(secrets.choice(API_KEY_ALPHABET) for _ in range(length))


def parse_origins(raw: str | list[str] | None) -> list[str]:
    """Split a newline-delimited origins option into a clean list.

    Entries are trimmed and blank lines are dropped; order is kept.
    """
    if raw is None:
        return []
    lines = raw if isinstance(raw, list) else _LINE_BREAK.split(raw)
    return [line.strip() for line in lines if line.strip()]


def normalize_origins(raw: str | list[str]) -> str:
    """Normalize an origins value for storage (one origin per line)."""
    return "\n".join(parse_origins(raw))


def normalize_flag(value: object) -> str:
    """Normalize a boolean-like option to ``"1"`` or ``"0"``."""
    if isinstance(value, str):
        return "0" if value.strip().lower() in {"", "0", "false", "no", "off"} else "1"
    return "1" if value else "0"


@dataclass(frozen=True)
class RuntimeOptions:
    """Snapshot of runtime options, read once per request."""

    api_key: str = ""
    allowed_origins: list[str] = field(default_factory=list)
    use_spam_check: bool = False


class ConfigStore:
    """Key-value store for runtime options.

    Backed by a Redis hash when Redis is available, otherwise by an
    in-process dict (single worker deployments and tests).
    """

    def __init__(self, settings: "Settings", redis: "Redis | None" = None):
        """Initialize with settings and optional Redis client."""
        self.settings = settings
        self.redis = redis
        self.hash_key = settings.redis_options_key
        self._local: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        """Get a raw option value, or None when it was never set."""
        if self.redis is not None:
            return await self.redis.hget(self.hash_key, key)
        return self._local.get(key)

    async def set(self, key: str, value: object) -> None:
        """Store an option, normalizing known keys."""
        if key == OPTION_ALLOWED_ORIGINS:
            stored = normalize_origins(value)  # type: ignore[arg-type]
        elif key == OPTION_USE_SPAM_CHECK:
            stored = normalize_flag(value)
        else:
            stored = str(value).strip()

        if self.redis is not None:
            await self.redis.hset(self.hash_key, key, stored)
        else:
            self._local[key] = stored

    async def ensure_defaults(self) -> None:
        """Seed options that are missing.

        The API key is generated only once; an existing key is never
        replaced.
        """
        if not await self.get(OPTION_API_KEY):
            await self.set(OPTION_API_KEY, generate_api_key(self.settings.api_key_length))
            logger.info("api_key_generated")

        if await self.get(OPTION_ALLOWED_ORIGINS) is None:
            await self.set(OPTION_ALLOWED_ORIGINS, self.settings.default_allowed_origins)

        if await self.get(OPTION_USE_SPAM_CHECK) is None:
            await self.set(OPTION_USE_SPAM_CHECK, self.settings.default_use_spam_check)

    async def load(self) -> RuntimeOptions:
        """Read all runtime options into an immutable snapshot."""
        use_spam_check = await self.get(OPTION_USE_SPAM_CHECK)
        return RuntimeOptions(
            api_key=await self.get(OPTION_API_KEY) or "",
            allowed_origins=parse_origins(await self.get(OPTION_ALLOWED_ORIGINS)),
            use_spam_check=normalize_flag(
                self.settings.default_use_spam_check
                if use_spam_check is None
                else use_spam_check
            )
            == "1",
        )
