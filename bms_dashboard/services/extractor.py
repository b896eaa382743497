# bms_dashboard/services/extractor.py
"""Pull the quoted payload of a `key = "..."` assignment out of a controller page."""

from __future__ import annotations

import re
from functools import lru_cache

from bms_dashboard.errors import MalformedDocument


@lru_cache(maxsize=None)
def assignment_pattern(key: str) -> re.Pattern[str]:
    # Whole-word key so that "PSet0 = ..." never satisfies "PSet".
    return re.compile(r"(?<![\w])" + re.escape(key) + r'\s*=\s*"([^"]*)"')


def extract(document: str, key: str) -> str:
    matches = assignment_pattern(key).findall(document)
    if not matches:
        raise MalformedDocument(key)
    if len(matches) > 1:
        raise MalformedDocument(key, f"assigned {len(matches)} times")
    return matches[0]
