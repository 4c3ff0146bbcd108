"""
Display identifiers for quotations.

An ID is a 6-digit random number followed by the date as DDMMYY, always 12
digits. It is a label printed on the document, not a key: collisions are
possible. Generate it once per quotation and pass the value around.

The three-letter location code is a separate display suffix; it is never
part of the stored or printed ID.
"""

import random
from datetime import date, datetime
from typing import Optional, Union


def location_code(location: Optional[str]) -> str:
    """'Nuevo Ideal, Durango' -> 'NUE' (first letters of each part, max 3)."""
    if not location:
        return ""
    parts = [part.strip()[:3].upper() for part in location.split(',')]
    return "".join(parts)[:3]


def with_location_code(quotation_id: str, location: Optional[str]) -> str:
    """'123456191026' + 'Nuevo Ideal' -> '123456191026NUE'."""
    return f"{quotation_id}{location_code(location)}"


def generate_quotation_id(today: Optional[Union[date, datetime]] = None,
                          rng: Optional[random.Random] = None) -> str:
    """
    Generate a quotation ID such as '042715191026'.

    Args:
        today: Date to stamp; defaults to the current date
        rng: Random source; defaults to the module-level generator
    """
    today = today or date.today()
    number = (rng or random).randrange(1_000_000)
    return f"{number:06d}{today:%d%m%y}"
