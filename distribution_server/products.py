"""Blood product classification from free-text labels."""
import unicodedata
from enum import Enum
from typing import Optional


class ProductCategory(str, Enum):
    ADULT_RED_CELLS = "adult_red_cells"
    PEDIATRIC_RED_CELLS = "pediatric_red_cells"
    PLASMA = "plasma"
    PLATELETS = "platelets"
    UNCLASSIFIED = "unclassified"


# Checked in order; the first trigger found wins
_TRIGGERS = (
    (("ADULTE",), ProductCategory.ADULT_RED_CELLS),
    (("PEDIATRIQUE", "NOURRISSON"), ProductCategory.PEDIATRIC_RED_CELLS),
    (("PLASMA",), ProductCategory.PLASMA),
    (("PLAQUETTES",), ProductCategory.PLATELETS),
)


def _fold(label: str) -> str:
    """Uppercase and strip accents ("Pédiatrique" -> "PEDIATRIQUE")."""
    decomposed = unicodedata.normalize("NFKD", label.upper())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def classify_product(label: Optional[str]) -> ProductCategory:
    """Map a product label such as "CGR ADULTE" to its category."""
    text = _fold(str(label or ""))
    for words, category in _TRIGGERS:
        if any(word in text for word in words):
            return category
    return ProductCategory.UNCLASSIFIED
