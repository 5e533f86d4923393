"""
Multilingual keyword tables.

Sites in the same theme family differ mostly by language, so every
language-dependent decision is a table lookup here. Adding a locale means
adding rows, not branches. Keys are lowercase and already stripped of a
trailing colon, matching what the engine looks up.
"""

from enum import Enum
from typing import Optional

from .schemas import NovelStatus


class InfoField(str, Enum):
    """Fields of the author/status info block."""
    AUTHOR = "author"
    ARTIST = "artist"
    STATUS = "status"


class TimeUnit(str, Enum):
    """Granularities understood by the relative date normalizer."""
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


STATUS_KEYWORDS: dict[str, NovelStatus] = {
    # Completed
    "مكتملة": NovelStatus.COMPLETED,
    "completed": NovelStatus.COMPLETED,
    "complété": NovelStatus.COMPLETED,
    "completo": NovelStatus.COMPLETED,
    "completado": NovelStatus.COMPLETED,
    "tamamlandı": NovelStatus.COMPLETED,
    # Ongoing
    "مستمرة": NovelStatus.ONGOING,
    "ongoing": NovelStatus.ONGOING,
    "en cours": NovelStatus.ONGOING,
    "em andamento": NovelStatus.ONGOING,
    "en progreso": NovelStatus.ONGOING,
    "devam ediyor": NovelStatus.ONGOING,
    # Hiatus
    "متوقفة": NovelStatus.ON_HIATUS,
    "hiatus": NovelStatus.ON_HIATUS,
    "en pause": NovelStatus.ON_HIATUS,
    "hiato": NovelStatus.ON_HIATUS,
    "pausa": NovelStatus.ON_HIATUS,
    "pausado": NovelStatus.ON_HIATUS,
    "duraklatıldı": NovelStatus.ON_HIATUS,
}

FIELD_LABELS: dict[str, InfoField] = {
    # Author
    "الكاتب": InfoField.AUTHOR,
    "author": InfoField.AUTHOR,
    "auteur": InfoField.AUTHOR,
    "autor": InfoField.AUTHOR,
    "yazar": InfoField.AUTHOR,
    # Status
    "الحالة": InfoField.STATUS,
    "status": InfoField.STATUS,
    "statut": InfoField.STATUS,
    "estado": InfoField.STATUS,
    "durum": InfoField.STATUS,
    # Artist
    "الفنان": InfoField.ARTIST,
    "artist": InfoField.ARTIST,
    "artiste": InfoField.ARTIST,
    "artista": InfoField.ARTIST,
    "çizer": InfoField.ARTIST,
}

# Price labels meaning "readable without paying". The empty string counts:
# a price cell with no text is a free chapter.
FREE_KEYWORDS: frozenset[str] = frozenset({
    "free",
    "gratuit",
    "مجاني",
    "livre",
    "",
})

# Unit keywords, matched by substring in ascending granularity. The order
# matters: "min" must win before anything coarser gets a chance.
TIME_UNIT_KEYWORDS: list[tuple[TimeUnit, tuple[str, ...]]] = [
    (TimeUnit.SECOND, ("detik", "segundo", "second", "วินาที")),
    (TimeUnit.MINUTE, ("menit", "dakika", "min", "minute", "minuto", "นาที", "دقائق")),
    (TimeUnit.HOUR, (
        "jam", "saat", "heure", "hora", "hour", "ชั่วโมง", "giờ", "ore", "ساعة", "小时",
    )),
    (TimeUnit.DAY, (
        "hari", "gün", "jour", "día", "dia", "day", "วัน", "ngày", "giorni", "أيام", "天",
    )),
    (TimeUnit.WEEK, ("week", "semana")),
    (TimeUnit.MONTH, ("month", "mes")),
    (TimeUnit.YEAR, ("year", "año")),
]


def normalize_label(text: str) -> str:
    """Lowercase, trim, and drop a trailing colon ("Status :" → "status")."""
    return text.lower().strip().rstrip(":：").strip()


def lookup_status(text: str) -> NovelStatus:
    """Map a status value to the canonical enum; Unknown when unmatched."""
    return STATUS_KEYWORDS.get(normalize_label(text), NovelStatus.UNKNOWN)


def lookup_field(text: str) -> Optional[InfoField]:
    """Map an info-block label to the field it introduces, if any."""
    return FIELD_LABELS.get(normalize_label(text))


def is_free(price_text: str) -> bool:
    """True when a chapter price label means the chapter is free."""
    return price_text.lower().strip() in FREE_KEYWORDS


def match_time_unit(text: str) -> Optional[TimeUnit]:
    """First unit (finest granularity first) whose keyword occurs in `text`."""
    for unit, keywords in TIME_UNIT_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return unit
    return None
