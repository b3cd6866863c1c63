from __future__ import annotations

import re
import secrets
from typing import Awaitable, Callable, Protocol

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CODE_HALF_LENGTH = 3
CODE_LENGTH = CODE_HALF_LENGTH * 2 + 1

_NON_ALNUM_PATTERN = re.compile(r"[^A-Z0-9]+")
_CODE_SHAPE_PATTERN = re.compile(r"^[A-Z0-9]{3}-[A-Z0-9]{3}$")


class ChoiceSource(Protocol):
    def choice(self, seq: str) -> str: ...


def normalize_redemption_code(raw_code: str) -> str:
    """Uppercases, drops every non-alphanumeric char and re-inserts the hyphen.

    Works the same for typed codes and QR payloads; the result is only a valid
    code when its length is exactly CODE_LENGTH.
    """
    compact = _NON_ALNUM_PATTERN.sub("", raw_code.upper())
    if len(compact) <= CODE_HALF_LENGTH:
        return compact
    return f"{compact[:CODE_HALF_LENGTH]}-{compact[CODE_HALF_LENGTH:]}"


def is_valid_redemption_code(code: str) -> bool:
    return _CODE_SHAPE_PATTERN.fullmatch(code) is not None


def generate_redemption_code(rng: ChoiceSource | None = None) -> str:
    source = rng if rng is not None else secrets
    head = "".join(source.choice(ALPHABET) for _ in range(CODE_HALF_LENGTH))
    tail = "".join(source.choice(ALPHABET) for _ in range(CODE_HALF_LENGTH))
    return f"{head}-{tail}"


async def generate_unique_redemption_code(
    exists: Callable[[str], Awaitable[bool]],
    *,
    max_attempts: int = 50,
    rng: ChoiceSource | None = None,
) -> str:
    for _ in range(max_attempts):
        candidate = generate_redemption_code(rng)
        if not await exists(candidate):
            return candidate
    raise RuntimeError("Unable to generate a unique redemption code")
