"""Main FastAPI application with routes."""
import datetime
import logging
from typing import List, Optional

from fastapi import Depends, Header, HTTPException, Query

from distribution_server.centers import BLOOD_GROUPS, CNTSCI_CENTERS, PRODUCT_TYPES, CenterFilter
from distribution_server.config import create_app, credentials_path
from distribution_server.identity import SessionManager, authenticate
from distribution_server.models import (
    ApiResponse,
    DashboardReport,
    HierarchyNode,
    HistoryEntry,
    LoginRequest,
    ServerConfig,
    SessionResponse,
    TimeWindow,
    User,
    WeeklyReport,
)
from distribution_server.reporting import build_dashboard, build_rollup, build_weekly, visible_history
from distribution_server.scope import resolve_scope
from distribution_server.sheets import ConfigurationError, RecordFetchError, build_source
from distribution_server.storage import (
    last_sync_time,
    load_config,
    load_records,
    load_users,
    save_config,
    save_records,
    save_users,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the FastAPI app
app = create_app()

sessions = SessionManager()


def current_user(x_session_token: Optional[str] = Header(None)) -> Optional[User]:
    """Acting user for the request; None means visitor."""
    return sessions.get(x_session_token)


def _center_filter(center: Optional[str]) -> Optional[CenterFilter]:
    return CenterFilter.parse(center) if center is not None else None


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "ok": True,
        "timestamp": datetime.datetime.utcnow().isoformat() + "Z",
        "last_sync": last_sync_time(),
    }


@app.get("/config", response_model=ServerConfig)
def get_config():
    """Get the current server configuration."""
    return load_config()


@app.put("/config", response_model=ServerConfig)
def update_config(cfg: ServerConfig):
    """Update the server configuration."""
    if cfg.source_type == "apps_script" and not cfg.script_url:
        raise HTTPException(status_code=400, detail="apps_script source requires script_url")
    if cfg.source_type == "sheets_api" and not cfg.spreadsheet_id:
        raise HTTPException(status_code=400, detail="sheets_api source requires spreadsheet_id")

    save_config(cfg)
    return cfg


@app.post("/sync", response_model=ApiResponse)
async def sync_records():
    """
    Pull the current distribution records (and agents) from the store
    and save them as the snapshot every report reads from.
    """
    cfg = load_config()

    try:
        source = build_source(cfg, credentials_path())
        records = await source.fetch_records()
    except ConfigurationError as e:
        logger.error(f"Sync not configured: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except RecordFetchError as e:
        logger.error(f"Sync failed: {e}")
        raise HTTPException(status_code=502, detail=f"fetch failed: {e}")

    saved_path = save_records(records)

    users_count = None
    try:
        users = await source.fetch_users()
        save_users(users)
        users_count = len(users)
    except (ConfigurationError, RecordFetchError) as e:
        # Keep the previous agents list, distribution data is still fresh
        logger.warning(f"Users not refreshed: {e}")

    logger.info(f"✅ Saved records snapshot: {len(records)} rows")

    return ApiResponse(
        ok=True,
        message=f"Snapshot saved: {saved_path}",
        data={
            "path": saved_path,
            "rows_count": len(records),
            "users_count": users_count,
        }
    )


@app.post("/session/login", response_model=SessionResponse)
def login(req: LoginRequest):
    """Open a session for an agent of the users sheet."""
    cfg = load_config()
    user = authenticate(load_users(), req.login, req.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid login or password")

    token = sessions.open(user)
    return SessionResponse(token=token, scope=resolve_scope(user, cfg.visitor_login))


@app.post("/session/logout", response_model=SessionResponse)
def logout(x_session_token: Optional[str] = Header(None)):
    """Close the session; the caller is a visitor again."""
    sessions.close(x_session_token)
    return SessionResponse(token=None, scope=resolve_scope(None))


@app.get("/session", response_model=SessionResponse)
def get_session(user: Optional[User] = Depends(current_user)):
    cfg = load_config()
    return SessionResponse(token=None, scope=resolve_scope(user, cfg.visitor_login))


@app.get("/reports/dashboard", response_model=DashboardReport)
def dashboard_report(
    year: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    day: Optional[str] = Query(None),
    center: Optional[str] = Query(None),
    top: int = Query(5, ge=1, le=50),
    user: Optional[User] = Depends(current_user),
):
    """Scoped dashboard statistics for a year / month / day window."""
    cfg = load_config()
    window = TimeWindow(year=year, month=month, day=day)
    return build_dashboard(
        load_records(),
        user,
        window,
        _center_filter(center),
        top=top,
        visitor_login=cfg.visitor_login,
    )


@app.get("/reports/tree", response_model=HierarchyNode)
def tree_report(
    year: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    day: Optional[str] = Query(None),
    center: Optional[str] = Query(None),
    user: Optional[User] = Depends(current_user),
):
    """Center > structure > product > blood group rollup."""
    cfg = load_config()
    window = TimeWindow(year=year, month=month, day=day)
    return build_rollup(load_records(), user, window, _center_filter(center), cfg.visitor_login)


@app.get("/reports/weekly", response_model=WeeklyReport)
def weekly_report(
    date: Optional[datetime.date] = Query(None),
    center: Optional[str] = Query(None),
    user: Optional[User] = Depends(current_user),
):
    """Monday to Sunday breakdown of the week containing ``date`` (default today)."""
    cfg = load_config()
    reference_day = date or datetime.date.today()
    return build_weekly(load_records(), user, reference_day, _center_filter(center), cfg.visitor_login)


@app.get("/records", response_model=List[HistoryEntry])
def list_records(
    center: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=1000),
    user: Optional[User] = Depends(current_user),
):
    """Latest visible records, most recent first."""
    cfg = load_config()
    return visible_history(load_records(), user, _center_filter(center), limit, cfg.visitor_login)


@app.get("/reference")
def reference_data():
    """Centers, blood groups and product labels for filter controls."""
    return {
        "centers": list(CNTSCI_CENTERS),
        "blood_groups": list(BLOOD_GROUPS),
        "product_types": list(PRODUCT_TYPES),
    }
