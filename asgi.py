"""
asgi.py -- Application assembly for Inkwell.

This is the ONLY file that imports from both api/ and web/. It joins the two
surfaces into a single ASGI app: the JSON API under /api/v1 (bearer tokens)
and the HTML UI at the root (session cookie). Both share one lifespan and
one set of stores on app.state.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app
from web.routes import router as web_router

# Mount the web UI router here, not in api/main.py.
app.include_router(web_router, tags=["Web UI"])
