"""Vercel Serverless Function - API Gateway"""
import sys
from pathlib import Path

# Make the package importable when deployed without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from distribution_server.app import app as fastapi_app

# Export for Vercel
app = fastapi_app
