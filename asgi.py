"""
asgi.py -- Application assembly for AuthGate.

The ASGI servers' import target. api/main.py builds the app; this module only
re-exports it so deployment configuration never has to change when the app
module moves.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
