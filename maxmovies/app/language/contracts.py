from __future__ import annotations

from enum import Enum


class LanguageTone(str, Enum):
    ENGLISH = "english"
    MIXED = "mixed"
    SWAHILI = "swahili"
