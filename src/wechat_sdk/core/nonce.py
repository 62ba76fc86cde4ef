"""
Random string helpers used for request nonces and OAuth state tokens.
"""

from __future__ import annotations

import secrets
import string
from typing import Callable

__all__ = ["NonceFunc", "random_nonce"]

NonceFunc = Callable[[int], str]

_ALPHABET = string.ascii_letters + string.digits


def random_nonce(size: int = 16) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(size))
