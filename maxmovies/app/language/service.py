from __future__ import annotations

from maxmovies.app.language.contracts import LanguageTone

SWAHILI_KEYWORDS = (
    "habari",
    "sasa",
    "niko",
    "kwani",
    "basi",
    "ndio",
    "karibu",
    "asante",
    "mambo",
    "poa",
    "sawa",
)
SHENG_KEYWORDS = (
    "bro",
    "maze",
    "manze",
    "noma",
    "fiti",
    "safi",
    "buda",
    "msee",
    "mwana",
    "poa",
    "vibe",
)
SWAHILI_THRESHOLD = 3

LANGUAGE_INSTRUCTIONS = {
    LanguageTone.SWAHILI: "Respond fully in Swahili or Sheng naturally depending on tone.",
    LanguageTone.MIXED: (
        "Respond bilingually — mostly English, with natural Swahili/Sheng flavor."
    ),
    LanguageTone.ENGLISH: "Respond in English, friendly Kenyan developer tone.",
}


def count_keyword_hits(text: str, keywords: tuple[str, ...]) -> int:
    lowered = text.lower()
    return sum(1 for keyword in keywords if keyword in lowered)


def classify_language(text: object) -> LanguageTone:
    if not isinstance(text, str) or not text:
        return LanguageTone.ENGLISH
    # Keywords shared by both lists count once per list.
    hits = count_keyword_hits(text, SWAHILI_KEYWORDS) + count_keyword_hits(
        text, SHENG_KEYWORDS
    )
    if hits == 0:
        return LanguageTone.ENGLISH
    if hits < SWAHILI_THRESHOLD:
        return LanguageTone.MIXED
    return LanguageTone.SWAHILI


def language_instruction(tone: LanguageTone) -> str:
    return LANGUAGE_INSTRUCTIONS[tone]
