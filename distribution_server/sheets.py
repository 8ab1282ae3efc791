"""Record source: Apps Script web endpoint or the Google Sheets API.

Both sources return the full current snapshot of the BASE DIST sheet (and the
agents sheet). Failures surface as RecordFetchError and never reach the
reporting engine.
"""
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from distribution_server.models import DistributionRecord, ServerConfig, User

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]

# BASE DIST column headers -> record keys
RECORD_HEADER_KEYS = {
    "Horodateur": "horodateur",
    "Nom de l'agent": "nomAgent",
    "Date de distribution": "dateDistribution",
    "Centre CNTSCI": "centreCntsci",
    "Structure Sanitaire Servie": "nomStructuresSanitaire",
    "Type Produit": "typeProduit",
    "SA_GROUPE": "saGroupe",
    "Quantité servie": "nbPoches",
}

USER_HEADER_KEYS = {
    "Nom de l'agent": "nomAgent",
    "Login": "login",
    "Mot de passe": "motDePasse",
    "Centre d'affectation": "centreAffectation",
}


class RecordFetchError(Exception):
    """The record store could not be read."""


class ConfigurationError(Exception):
    """The configured source is missing its URL or spreadsheet id."""


def arrays_to_objects(values: List[List[Any]], header_keys: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
    """Convert 2D array to list of objects with headers as keys."""
    if not values or not values[0]:
        return []

    header_keys = header_keys or {}
    # First row is header
    header = [header_keys.get(str(h).strip(), str(h).strip()) for h in values[0]]
    objects = []

    for row in values[1:]:
        # Skip empty rows
        if not any(str(cell if cell is not None else "").strip() for cell in row):
            continue

        obj = {}
        for col_index, key in enumerate(header):
            obj[key] = row[col_index] if col_index < len(row) else None
        objects.append(obj)

    return objects


def parse_records(rows: List[Any]) -> List[DistributionRecord]:
    """Build records from store rows; only non-object rows are dropped."""
    records = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning(f"Skipping distribution row {index}: expected an object, got {type(row).__name__}")
            continue
        records.append(DistributionRecord.model_validate(row))
    return records


def parse_users(rows: List[Any]) -> List[User]:
    users = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning(f"Skipping user row {index}: expected an object, got {type(row).__name__}")
            continue
        user = User.model_validate(row)
        if not user.login:
            logger.warning(f"Skipping user row {index}: no login")
            continue
        users.append(user)
    return users


class AppsScriptSource:
    """Reads the sheet through the deployed Apps Script (``?action=get_dist``)."""

    def __init__(self, script_url: str, timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.script_url = script_url.strip()
        self.timeout = timeout
        self.transport = transport

    async def _get_action(self, action: str) -> List[Any]:
        # Cache buster, the script endpoint sits behind Google's caches
        params = {"action": action, "_t": str(int(time.time() * 1000))}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport,
                                         follow_redirects=True) as client:
                response = await client.get(self.script_url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise RecordFetchError(f"{action} request failed: {e}") from e
        except ValueError as e:
            raise RecordFetchError(f"{action} returned invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise RecordFetchError(f"{action} returned {type(data).__name__}, expected a list")
        return data

    async def fetch_records(self) -> List[DistributionRecord]:
        rows = await self._get_action("get_dist")
        logger.info(f"Fetched {len(rows)} distribution rows from Apps Script")
        return parse_records(rows)

    async def fetch_users(self) -> List[User]:
        rows = await self._get_action("get_users")
        return parse_users(rows)


async def fetch_sheet_values(spreadsheet_id: str, sheet_name: str, credentials_path: Union[str, Path],
                             transport: Optional[httpx.AsyncBaseTransport] = None) -> List[List[str]]:
    """Fetch values from a Google Sheet using service account credentials."""
    # Always quote sheet names to form a valid A1 range (handles spaces and special chars)
    encoded_range = quote(f"'{sheet_name}'", safe='')
    url = f"https://sheets.googleapis.com/v4/spreadsheets/{spreadsheet_id}/values/{encoded_range}"

    creds_path = Path(credentials_path)
    if not creds_path.exists():
        raise ConfigurationError(f"Google Sheets credentials not found at {creds_path}")

    try:
        credentials = service_account.Credentials.from_service_account_file(str(creds_path), scopes=SHEETS_SCOPES)
        credentials.refresh(Request())
    except (GoogleAuthError, ValueError, OSError) as e:
        raise RecordFetchError(f"Could not obtain a Google access token: {e}") from e
    headers = {"Authorization": f"Bearer {credentials.token}"}

    try:
        async with httpx.AsyncClient(timeout=30.0, headers=headers, transport=transport) as client:
            response = await client.get(url)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise RecordFetchError("Spreadsheet or sheet not found. Check spreadsheet_id and sheet_name.") from e
        if e.response.status_code == 403:
            raise RecordFetchError("Permission denied. Share the spreadsheet with the service account.") from e
        raise RecordFetchError(f"Google Sheets API error: {e}") from e
    except (httpx.HTTPError, ValueError) as e:
        raise RecordFetchError(f"Google Sheets API request failed: {e}") from e

    if not isinstance(data, dict):
        raise RecordFetchError(f"Google Sheets API returned {type(data).__name__}, expected an object")
    return data.get("values", [])


class SheetsApiSource:
    """Reads the BASE DIST and agents sheets through the Sheets API v4."""

    def __init__(self, spreadsheet_id: str, credentials_path: Union[str, Path],
                 sheet_name: str = "BASE DIST", users_sheet_name: str = "UTILISATEURS",
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.spreadsheet_id = spreadsheet_id
        self.credentials_path = credentials_path
        self.sheet_name = sheet_name
        self.users_sheet_name = users_sheet_name
        self.transport = transport

    async def fetch_records(self) -> List[DistributionRecord]:
        values = await fetch_sheet_values(self.spreadsheet_id, self.sheet_name,
                                          self.credentials_path, self.transport)
        rows = arrays_to_objects(values, RECORD_HEADER_KEYS)
        logger.info(f"Fetched {len(rows)} distribution rows from sheet '{self.sheet_name}'")
        return parse_records(rows)

    async def fetch_users(self) -> List[User]:
        values = await fetch_sheet_values(self.spreadsheet_id, self.users_sheet_name,
                                          self.credentials_path, self.transport)
        return parse_users(arrays_to_objects(values, USER_HEADER_KEYS))


def build_source(cfg: ServerConfig, credentials_path: Union[str, Path]):
    """Instantiate the record source selected in the server configuration."""
    if cfg.source_type == "sheets_api":
        if not cfg.spreadsheet_id:
            raise ConfigurationError("sheets_api source requires spreadsheet_id")
        return SheetsApiSource(cfg.spreadsheet_id, credentials_path,
                               cfg.sheet_name, cfg.users_sheet_name)
    if not cfg.script_url:
        raise ConfigurationError("apps_script source requires script_url")
    return AppsScriptSource(cfg.script_url)
