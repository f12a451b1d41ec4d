"""
Asset Memory - diagnostics API
Exposes health and cache inspection endpoints for a running asset session.
"""
import logging
import re
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from app.cache import NullResourceContext
from app.session import AssetSession
from config.settings import settings

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

# Version tracking
APP_VERSION = "v0.1.0"
APP_NAME = "Asset Memory"
APP_STAGE = "Pre-Alpha"


def create_app(session: Optional[AssetSession] = None) -> FastAPI:
    """
    Build the diagnostics app around an asset session.

    Args:
        session: Session to inspect. A headless session is created if omitted.
    """
    session = session or AssetSession(NullResourceContext())

    app = FastAPI(
        title=f"{APP_NAME} ({APP_STAGE})",
        description="Inspection endpoints for the in-process asset cache",
        version=APP_VERSION,
    )
    app.state.session = session

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok", "entries": len(session.store)}

    @app.get("/version")
    def version_info():
        """Version information endpoint."""
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "stage": APP_STAGE,
            "full": f"{APP_NAME} {APP_VERSION} ({APP_STAGE})"
        }

    @app.get("/cache/stats")
    def cache_stats():
        """Get cache statistics."""
        return session.get_stats()

    @app.get("/cache/search")
    def cache_search(
        pattern: str = Query(..., min_length=1, description="Regular expression matched against keys"),
    ):
        """List cached keys matching a regular expression, with their state."""
        try:
            keys = session.store.search(pattern)
        except re.error as e:
            raise HTTPException(status_code=400, detail=f"Invalid pattern: {e}")
        states = [session.store.state(key) for key in keys]
        return {
            "pattern": pattern,
            "count": len(keys),
            "keys": [
                {"key": key, "state": state.value if state else None}
                for key, state in zip(keys, states)
            ],
        }

    return app


app = create_app()
