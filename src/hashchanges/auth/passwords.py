# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

# argon2id, roughly the cost of bcrypt with 10 rounds on current hardware.
DEFAULT_TIME_COST = 3
DEFAULT_MEMORY_COST = 65536  # KiB
DEFAULT_PARALLELISM = 4


def make_hasher(
    time_cost: int = DEFAULT_TIME_COST,
    memory_cost: int = DEFAULT_MEMORY_COST,
    parallelism: int = DEFAULT_PARALLELISM,
) -> PasswordHasher:
    return PasswordHasher(time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism)


_PH = make_hasher()


def hash_password(plain: str, *, hasher: Optional[PasswordHasher] = None) -> str:
    if not plain:
        raise ValueError("Empty password")
    return (hasher or _PH).hash(plain)


def verify_password(hash_value: str, plain: str, *, hasher: Optional[PasswordHasher] = None) -> bool:
    if not hash_value or not plain:
        return False
    try:
        return (hasher or _PH).verify(hash_value, plain)
    except (VerificationError, InvalidHashError):
        return False
