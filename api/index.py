"""ASGI entrypoint for serverless deployment of the order planner API."""

import sys
from pathlib import Path

# Serverless runtimes import this file from api/; the packages live one level up.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from web.app import app

handler = app
