"""Reference taxonomy: CNTSCI centers, blood groups and product labels."""
from enum import Enum
from typing import Optional

# Closed set of regional centers (CRTS / CDTS / SP) reporting distributions
CNTSCI_CENTERS = (
    'CRTS TREICHVILLE', 'CDTS BINGERVILLE', 'SP PORT BOUET', 'SP ABOBO BAOULE',
    'SP ANYAMA', 'SP YOPOUGON ATTIE', 'SP CHU COCODY', 'SP YOPOUGON CHU',
    'CDTS ABOISSO', 'CDTS BONOUA', 'CDTS ADZOPE', 'CDTS AGBOVILLE', 'CDTS DABOU',
    'CRTS YAMOUSSOUKRO', 'CDTS TOUMODI', 'CDTS GAGNOA', 'CDTS DIVO', 'CDTS DIMBOKRO',
    'CRTS BOUAKE', 'CRTS KORHOGO', 'CDTS FERKE', 'CRTS ABENGOUROU', 'CDTS DAOUKRO',
    'CDTS BONGOUANOU', 'CDTS BONDOUKOU', 'CDTS BOUNA', 'CRTS DALOA', 'CDTS SEGUELA',
    'CRTS SAN-PEDRO', 'CDTS DUEKOUE', 'CCRTS MAN', 'CDTS ODIENNE', 'CDTS BOUAFLE',
)

BLOOD_GROUPS = ('O+', 'O-', 'A+', 'A-', 'B+', 'B-', 'AB+', 'AB-')

PRODUCT_TYPES = (
    'CGR ADULTE',
    'CGR PEDIATRIQUE',
    'CGR NOURRISSON',
    'PLASMA FRAIS CONGELE',
    'PLAQUETTES',
)

# Bucket key for blank center / structure / product / group values
UNKNOWN_KEY = "NON RENSEIGNE"

# Home-center sentinels stored in the users sheet
_ALL_CENTERS_SENTINEL = "TOUS LES CENTRES CNTSCI"
_HEADQUARTERS_SENTINEL = "DIRECTION GENERALE"

# Legacy literals the dashboards used for "no center filter"
_ALL_CENTERS_FILTER_LITERALS = {
    "TOUS",
    "TOUS LES CENTRES",
    "TOUS LES SITES",
    _ALL_CENTERS_SENTINEL,
    "ALL",
}


class HomeCenterKind(str, Enum):
    """What a user's home center designates."""
    CENTER = "center"
    ALL_CENTERS = "all_centers"
    HEADQUARTERS = "headquarters"


def classify_home_center(raw: Optional[str]) -> HomeCenterKind:
    """Map a raw home-center value to its kind.

    This is the only place the sentinel strings are compared.
    """
    value = (raw or "").strip().upper()
    if value == _ALL_CENTERS_SENTINEL:
        return HomeCenterKind.ALL_CENTERS
    if value == _HEADQUARTERS_SENTINEL:
        return HomeCenterKind.HEADQUARTERS
    return HomeCenterKind.CENTER


def is_known_center(name: Optional[str]) -> bool:
    return (name or "").strip() in CNTSCI_CENTERS


class CenterFilter:
    """Either every center, or exactly one named center."""

    __slots__ = ("_center",)

    def __init__(self, center: Optional[str] = None):
        self._center = center

    @classmethod
    def all(cls) -> "CenterFilter":
        return cls(None)

    @classmethod
    def only(cls, center: str) -> "CenterFilter":
        return cls(center.strip())

    @classmethod
    def parse(cls, raw: Optional[str]) -> "CenterFilter":
        """Build a filter from a query-string value."""
        value = (raw or "").strip()
        if not value or value.upper() in _ALL_CENTERS_FILTER_LITERALS:
            return cls.all()
        return cls.only(value)

    @property
    def is_all(self) -> bool:
        return self._center is None

    @property
    def center(self) -> Optional[str]:
        return self._center

    @property
    def label(self) -> str:
        return "TOUS LES CENTRES" if self._center is None else self._center

    def matches(self, center: Optional[str]) -> bool:
        if self._center is None:
            return True
        return (center or "").strip() == self._center

    def __eq__(self, other):
        if not isinstance(other, CenterFilter):
            return NotImplemented
        return self._center == other._center

    def __hash__(self):
        return hash(self._center)

    def __repr__(self):
        return "CenterFilter.all()" if self._center is None else f"CenterFilter.only({self._center!r})"
