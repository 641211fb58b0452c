"""Hashing utilities."""
from __future__ import annotations

import hashlib
import json
from typing import Any


def dict_hash(payload: dict[str, Any]) -> str:
    dumped = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(dumped).hexdigest()
