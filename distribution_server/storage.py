"""Storage utilities for configuration and record snapshots."""
import datetime
import json
import logging
import os
from typing import List, Optional, Tuple

from distribution_server.config import data_dir, env_script_url, env_visitor_login
from distribution_server.models import DistributionRecord, ServerConfig, User

logger = logging.getLogger(__name__)

RECORDS_SNAPSHOT = "records"
USERS_SNAPSHOT = "users"


def _config_path() -> str:
    return os.path.join(data_dir(), "config.json")


def load_config() -> ServerConfig:
    """Load server configuration from disk, creating default if not exists.

    ``CNTSCI_SCRIPT_URL`` / ``CNTSCI_VISITOR_LOGIN`` fill in values the file
    leaves empty.
    """
    conf_path = _config_path()
    if not os.path.exists(conf_path):
        save_config(ServerConfig())

    with open(conf_path, "r", encoding="utf-8") as f:
        cfg = ServerConfig(**json.load(f))

    overrides = {}
    if not cfg.script_url and env_script_url():
        overrides["script_url"] = env_script_url()
    if env_visitor_login():
        overrides["visitor_login"] = env_visitor_login()
    return cfg.model_copy(update=overrides) if overrides else cfg


def save_config(cfg: ServerConfig) -> None:
    """Save server configuration to disk."""
    with open(_config_path(), "w", encoding="utf-8") as f:
        json.dump(cfg.model_dump(), f, ensure_ascii=False, indent=2)


def snapshot_paths(kind: str) -> Tuple[str, str]:
    """Get snapshot paths for a snapshot kind (timestamped and latest)."""
    kind_dir = os.path.join(data_dir(), "snapshots", kind)
    os.makedirs(kind_dir, exist_ok=True)

    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    timestamped_path = os.path.join(kind_dir, f"{timestamp}.json")
    latest_path = os.path.join(kind_dir, "latest.json")

    return timestamped_path, latest_path


def write_snapshot(kind: str, payload: dict) -> str:
    """Write snapshot to both timestamped and latest files."""
    timestamped_path, latest_path = snapshot_paths(kind)

    # Write timestamped version
    with open(timestamped_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)

    # Write/overwrite latest version
    with open(latest_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)

    return timestamped_path


def read_latest_snapshot(kind: str) -> Optional[dict]:
    """Read the latest snapshot of a kind."""
    latest_path = os.path.join(data_dir(), "snapshots", kind, "latest.json")

    if not os.path.exists(latest_path):
        return None

    with open(latest_path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_records(records: List[DistributionRecord]) -> str:
    payload = {
        "generated_at": datetime.datetime.utcnow().isoformat() + "Z",
        "rows_count": len(records),
        "rows": [record.model_dump(by_alias=True) for record in records],
    }
    return write_snapshot(RECORDS_SNAPSHOT, payload)


def load_records() -> List[DistributionRecord]:
    """Records of the last successful sync; empty before the first one."""
    snapshot = read_latest_snapshot(RECORDS_SNAPSHOT)
    if snapshot is None:
        logger.warning("No records snapshot yet, run /sync first")
        return []
    return [DistributionRecord.model_validate(row) for row in snapshot.get("rows", [])]


def last_sync_time() -> Optional[str]:
    snapshot = read_latest_snapshot(RECORDS_SNAPSHOT)
    return snapshot.get("generated_at") if snapshot else None


def save_users(users: List[User]) -> str:
    # password_secret is excluded from normal dumps, keep it for login
    rows = [{**user.model_dump(by_alias=True), "motDePasse": user.password_secret} for user in users]
    payload = {
        "generated_at": datetime.datetime.utcnow().isoformat() + "Z",
        "rows_count": len(users),
        "rows": rows,
    }
    return write_snapshot(USERS_SNAPSHOT, payload)


def load_users() -> List[User]:
    snapshot = read_latest_snapshot(USERS_SNAPSHOT)
    if snapshot is None:
        return []
    return [User.model_validate(row) for row in snapshot.get("rows", [])]
