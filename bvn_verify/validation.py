from __future__ import annotations

import re

from .exceptions import ValidationError

BVN_LENGTH = 11
MIN_NAME_LENGTH = 2

_BVN_PATTERN = re.compile(r"[0-9]{%d}" % BVN_LENGTH)


def is_valid_bvn(value: str) -> bool:
    return bool(_BVN_PATTERN.fullmatch(value or ""))


def validate_input(bvn: str, customer_name: str) -> None:
    """Check a BVN/name pair before any backend sees it.

    Rules are applied in order and the first failure wins. Nothing is
    trimmed or case-folded here; normalization belongs to name matching.
    """
    if not bvn or not customer_name:
        raise ValidationError("identity number and name are required")
    if not is_valid_bvn(bvn):
        raise ValidationError(f"identity number must be exactly {BVN_LENGTH} digits")
    if len(customer_name) < MIN_NAME_LENGTH:
        raise ValidationError(f"name must be at least {MIN_NAME_LENGTH} characters long")
