"""Flat shipping fees per governorate.

The storefront sends the Arabic place name; ``shipping_cost_for`` is the only
lookup used for both the checkout quote and the final order price.
"""

from enum import Enum
from typing import Any, Dict

from errors import InvalidRegion


class Governorate(str, Enum):
    CAIRO = "القاهرة"
    GIZA = "الجيزة"
    NEW_CAIRO = "القاهرة الجديدة"
    ALEXANDRIA = "الإسكندرية"
    DELTA = "الدلتا"
    UPPER_EGYPT = "الصعيد"

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


SHIPPING_RATES: Dict[Governorate, int] = {
    Governorate.CAIRO: 60,
    Governorate.GIZA: 65,
    Governorate.NEW_CAIRO: 70,
    Governorate.ALEXANDRIA: 75,
    Governorate.DELTA: 75,
    Governorate.UPPER_EGYPT: 85,
}


def shipping_cost_for(governorate: Any) -> int:
    try:
        return SHIPPING_RATES[Governorate(governorate)]
    except ValueError:
        raise InvalidRegion(governorate)


def governorate_label(governorate: Any) -> str:
    """English label for receipts; unknown values are returned unchanged."""
    try:
        return Governorate(governorate).label
    except ValueError:
        return str(governorate or "")
