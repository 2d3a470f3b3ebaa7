"""Labels and date formats for the languages posts are written in."""

from __future__ import annotations

import datetime as dt

FALLBACK = "en"

MONTHS = {
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "es": [
        "enero", "febrero", "marzo", "abril", "mayo", "junio",
        "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
    ],
}

LABELS = {
    "en": {
        "latest": "Latest posts",
        "page": "Page",
        "read_more": "Read more",
        "back": "Back to home",
        "newer": "Newer posts",
        "older": "Older posts",
        "by": "by",
    },
    "es": {
        "latest": "Últimas entradas",
        "page": "Página",
        "read_more": "Seguir leyendo",
        "back": "Volver al inicio",
        "newer": "Entradas más recientes",
        "older": "Entradas anteriores",
        "by": "por",
    },
}


def language(lang: str) -> str:
    primary = (lang or "").split("-")[0].split("_")[0].lower()
    return primary if primary in LABELS else FALLBACK


def label(lang: str, key: str) -> str:
    return LABELS[language(lang)][key]


def format_date(value: dt.datetime, lang: str) -> str:
    code = language(lang)
    month = MONTHS[code][value.month - 1]
    if code == "es":
        return f"{value.day} de {month} de {value.year}"
    return f"{month} {value.day}, {value.year}"
