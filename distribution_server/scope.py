"""Role-based visibility scoping for distribution records.

A standard agent only ever sees their own center, whatever center filter
the caller passes. Supervisors (home center "all centers" or headquarters)
and visitors get the requested filter as-is.
"""
from typing import Iterable, List, Optional

from distribution_server.centers import CenterFilter, HomeCenterKind
from distribution_server.models import DistributionRecord, ScopeRole, User, VisibilityScope

DEFAULT_VISITOR_LOGIN = "visiteur"


def _is_visitor(user: Optional[User], visitor_login: str) -> bool:
    if user is None:
        return True
    return user.login.lower() == visitor_login.strip().lower()


def resolve_scope(user: Optional[User], visitor_login: str = DEFAULT_VISITOR_LOGIN) -> VisibilityScope:
    """Resolve the scope for the acting user (None when nobody is logged in)."""
    if _is_visitor(user, visitor_login):
        return VisibilityScope(
            role=ScopeRole.VISITOR,
            display_name=user.display_name if user else "",
        )

    kind = user.home_center_kind
    if kind in (HomeCenterKind.ALL_CENTERS, HomeCenterKind.HEADQUARTERS):
        return VisibilityScope(
            role=ScopeRole.SUPERVISOR_AGENT,
            display_name=user.display_name,
            home_center=user.home_center,
            home_center_kind=kind,
            center_filter_enabled=True,
            personal_filters_enabled=True,
            can_submit=True,
            can_manage_users=kind == HomeCenterKind.HEADQUARTERS,
        )

    return VisibilityScope(
        role=ScopeRole.STANDARD_AGENT,
        display_name=user.display_name,
        home_center=user.home_center,
        home_center_kind=kind,
        center_filter_enabled=False,
        personal_filters_enabled=True,
        can_submit=True,
    )


def default_center_filter(scope: VisibilityScope) -> CenterFilter:
    """Filter a fresh session starts with."""
    if scope.role == ScopeRole.STANDARD_AGENT:
        return CenterFilter.only(scope.home_center or "")
    return CenterFilter.all()


def effective_center_filter(scope: VisibilityScope, requested: Optional[CenterFilter]) -> CenterFilter:
    """Center filter actually applied for this scope."""
    if scope.role == ScopeRole.STANDARD_AGENT:
        # Always the home center, whatever was requested
        return CenterFilter.only(scope.home_center or "")
    if requested is None:
        return default_center_filter(scope)
    return requested


def filter_records(records: Iterable[DistributionRecord], center_filter: CenterFilter) -> List[DistributionRecord]:
    return [record for record in records if center_filter.matches(record.center)]


def resolve_visible_records(
    all_records: Iterable[DistributionRecord],
    user: Optional[User],
    requested_center_filter: Optional[CenterFilter] = None,
    visitor_login: str = DEFAULT_VISITOR_LOGIN,
) -> List[DistributionRecord]:
    """Return the records the user may read under the requested center filter."""
    scope = resolve_scope(user, visitor_login)
    return filter_records(all_records, effective_center_filter(scope, requested_center_filter))
