"""FastAPI application configuration and environment settings."""
import os
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent

# Load env from the package .env first (if present), then the nearest .env up the tree
package_dotenv = PACKAGE_DIR / '.env'
if package_dotenv.exists():
    load_dotenv(package_dotenv, override=False)
load_dotenv(find_dotenv(), override=False)


def data_dir() -> Path:
    """Directory holding config.json and the record snapshots."""
    path = Path(os.getenv("CNTSCI_DATA_DIR") or PACKAGE_DIR / "data")
    path.mkdir(parents=True, exist_ok=True)
    return path


def credentials_path() -> Path:
    """Service-account file used by the Sheets API source."""
    return Path(os.getenv("GOOGLE_SHEETS_CREDENTIALS") or PROJECT_ROOT / "google_sheets_credentials.json")


def env_script_url() -> Optional[str]:
    return os.getenv("CNTSCI_SCRIPT_URL") or None


def env_visitor_login() -> Optional[str]:
    return os.getenv("CNTSCI_VISITOR_LOGIN") or None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="CNTSCI Distribution Reporting Server",
        description="Scoped statistics over blood-product distribution records",
        version="1.0.0"
    )

    # Configure CORS
    frontend_url = os.getenv("FRONTEND_URL", "")

    # Allow localhost for development, and specific frontend URL for production
    if frontend_url:
        allowed_origins = [
            frontend_url,
            "http://localhost:5173",  # Vite dev server
            "http://localhost:3000",  # Alternative dev port
        ]
    else:
        # Development mode: allow all origins
        allowed_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app
