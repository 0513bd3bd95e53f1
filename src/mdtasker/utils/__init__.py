from .dates import is_iso_date, parse_date, today_iso
from .slugs import SlugGenerator, slugify

__all__ = [
    "is_iso_date",
    "parse_date",
    "today_iso",
    "SlugGenerator",
    "slugify",
]
