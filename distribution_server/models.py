"""Pydantic models for records, users, report payloads and API validation."""
import datetime as dt
import math
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from distribution_server.centers import HomeCenterKind, classify_home_center
from distribution_server.products import ProductCategory

# Query values meaning "any year / month / day"
WINDOW_WILDCARDS = {"TOUS", "ALL", "*"}


def to_quantity(value: Any) -> int:
    """Convert a sheet cell to a unit count; anything unusable counts as 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(str(value).replace(",", ".").replace(" ", ""))
    except (ValueError, TypeError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class DistributionRecord(BaseModel):
    """One distribution event as stored in the BASE DIST sheet."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: str = Field("", alias="horodateur")
    agent_name: str = Field("", alias="nomAgent")
    distribution_date: str = Field("", alias="dateDistribution")
    center: str = Field("", alias="centreCntsci")
    health_structure: str = Field("", alias="nomStructuresSanitaire")
    product_type: str = Field("", alias="typeProduit")
    blood_group: str = Field("", alias="saGroupe")
    quantity: int = Field(0, alias="nbPoches")

    @field_validator(
        "timestamp", "agent_name", "distribution_date", "center",
        "health_structure", "product_type", "blood_group",
        mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> str:
        return _clean_text(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value: Any) -> int:
        return to_quantity(value)


class User(BaseModel):
    """Agent account from the users sheet."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    display_name: str = Field("", alias="nomAgent")
    login: str = ""
    password_secret: str = Field("", alias="motDePasse", exclude=True, repr=False)
    home_center: str = Field("", alias="centreAffectation")

    @field_validator("display_name", "login", "password_secret", "home_center", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _clean_text(value)

    @property
    def home_center_kind(self) -> HomeCenterKind:
        return classify_home_center(self.home_center)


class TimeWindow(BaseModel):
    """Year / month / day filter; None on a field means "all"."""
    model_config = ConfigDict(frozen=True)

    year: Optional[str] = None
    month: Optional[str] = None
    day: Optional[str] = None

    @field_validator("year", "month", "day", mode="before")
    @classmethod
    def _wildcard(cls, value: Any, info) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        if not text or text.upper() in WINDOW_WILDCARDS:
            return None
        if info.field_name == "year":
            return text
        return text.zfill(2)

    @classmethod
    def everything(cls) -> "TimeWindow":
        return cls()

    @classmethod
    def for_year(cls, year: str) -> "TimeWindow":
        return cls(year=year)

    @property
    def is_everything(self) -> bool:
        return self.year is None and self.month is None and self.day is None


class StatBucket(BaseModel):
    """Totals for one time window and center filter."""
    model_config = ConfigDict(frozen=True)

    total: int = 0
    adult_red_cells: int = 0
    pediatric_red_cells: int = 0
    plasma: int = 0
    platelets: int = 0
    record_count: int = 0
    structures_served: int = 0
    undated_records: int = 0

    @computed_field
    @property
    def red_cells(self) -> int:
        return self.adult_red_cells + self.pediatric_red_cells

    @computed_field
    @property
    def labile_products(self) -> int:
        return self.plasma + self.platelets


class TreeLevel(str, Enum):
    ROOT = "root"
    CENTER = "center"
    STRUCTURE = "structure"
    PRODUCT = "product"
    BLOOD_GROUP = "blood_group"


class HierarchyNode(BaseModel):
    """Node of the center > structure > product > blood group rollup."""
    model_config = ConfigDict(frozen=True)

    key: str
    level: TreeLevel
    total: int = 0
    children: Dict[str, "HierarchyNode"] = Field(default_factory=dict)
    # Filled on the root and center nodes only
    blood_group_totals: Dict[str, int] = Field(default_factory=dict)

    def child(self, *path: str) -> Optional["HierarchyNode"]:
        node: Optional[HierarchyNode] = self
        for key in path:
            if node is None:
                return None
            node = node.children.get(key)
        return node

    def leaf_total(self) -> int:
        if not self.children:
            return self.total
        return sum(child.leaf_total() for child in self.children.values())


class SeriesPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    value: int = 0


class RankEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    quantity: int


class PeakBucket(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    value: int


class ScopeRole(str, Enum):
    VISITOR = "visitor"
    STANDARD_AGENT = "standard_agent"
    SUPERVISOR_AGENT = "supervisor_agent"


class VisibilityScope(BaseModel):
    """What the acting user may read and which filter controls are live."""
    model_config = ConfigDict(frozen=True)

    role: ScopeRole
    display_name: str = ""
    home_center: Optional[str] = None
    home_center_kind: Optional[HomeCenterKind] = None
    center_filter_enabled: bool = False
    personal_filters_enabled: bool = False
    can_submit: bool = False
    can_manage_users: bool = False


class WeeklyReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    week_start: dt.date
    week_end: dt.date
    days: List[SeriesPoint]
    total: int = 0
    product_mix: Dict[str, int] = Field(default_factory=dict)
    active_structures: List[str] = Field(default_factory=list)
    peak_day: Optional[PeakBucket] = None


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    record: DistributionRecord
    date_fr: str
    category: ProductCategory


class DashboardReport(BaseModel):
    """Everything a dashboard page needs for one filter selection."""
    model_config = ConfigDict(frozen=True)

    scope: VisibilityScope
    center_filter: str
    window: TimeWindow
    record_count: int
    window_stats: StatBucket
    annual_year: str
    annual_stats: StatBucket
    all_time_stats: StatBucket
    tree: HierarchyNode
    top_structures: List[RankEntry]
    top_product: Optional[RankEntry] = None
    monthly_series: List[SeriesPoint]
    peak_month: Optional[PeakBucket] = None
    daily_series: List[SeriesPoint] = Field(default_factory=list)
    peak_day: Optional[PeakBucket] = None
    rolling_window: List[SeriesPoint]


class ServerConfig(BaseModel):
    """Server configuration model."""
    source_type: Literal["apps_script", "sheets_api"] = "apps_script"
    script_url: Optional[str] = None
    spreadsheet_id: Optional[str] = None
    sheet_name: str = "BASE DIST"
    users_sheet_name: str = "UTILISATEURS"
    visitor_login: str = "visiteur"
    # Polling cadence for dashboard clients, served by /config
    refresh_interval_minutes: int = Field(default=5, gt=0)


class LoginRequest(BaseModel):
    login: str
    password: str


class SessionResponse(BaseModel):
    token: Optional[str] = None
    scope: VisibilityScope


class ApiResponse(BaseModel):
    """Standardized API response model."""
    ok: bool
    message: str = ""
    data: Optional[dict] = None
