#!/usr/bin/env python3
"""
Sign-to-Health Session API - FastAPI server
Stores and serves intake session records for the clinician dashboard
"""

import argparse
import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from . import __version__
from .config import load_config
from .session import SessionRecord
from .storage import STORE_ERRORS, SessionStore


logger = logging.getLogger(__name__)


def _failure(error: str, exc: Exception, status_code: int = 500) -> JSONResponse:
    logger.error(f"❌ {error}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": str(exc)},
    )


def _record_from_body(body: Dict[str, Any]) -> SessionRecord:
    try:
        return SessionRecord.model_validate(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid session record: {e.errors()}")


def create_app(store) -> FastAPI:
    """
    Build the session API around a store.

    Args:
        store: SessionStore (or anything with the same interface)

    Returns:
        FastAPI application
    """
    started = time.monotonic()

    app = FastAPI(
        title="Sign-to-Health Session API",
        description="Patient intake session history for clinicians",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/sessions")
    async def list_sessions(
        filter: str = "all",
        stats: bool = False,
        start_date: Optional[float] = Query(None, alias="startDate"),
        end_date: Optional[float] = Query(None, alias="endDate"),
    ):
        """List sessions, or return statistics with ?stats=true"""
        try:
            if stats:
                return {"success": True, "data": store.get_stats().model_dump()}
            sessions = store.list_sessions(filter, start_date, end_date)
        except STORE_ERRORS as e:
            return _failure("Failed to fetch sessions", e)
        return {
            "success": True,
            "data": [s.model_dump(mode="json") for s in sessions],
            "count": len(sessions),
        }

    @app.post("/api/sessions", status_code=201)
    async def create_session(body: Dict[str, Any] = Body(...)):
        """Save a session record (upsert by id)"""
        if not body.get("id") or body.get("timestamp") is None:
            raise HTTPException(status_code=400, detail="Missing required fields: id, timestamp")
        record = _record_from_body(body)
        try:
            saved = store.save_session(record)
        except STORE_ERRORS as e:
            return _failure("Failed to save session", e)
        logger.info(f"💾 Saved session {saved.id}")
        return {
            "success": True,
            "data": saved.model_dump(mode="json"),
            "message": "Session saved successfully",
        }

    @app.delete("/api/sessions")
    async def clear_sessions():
        """Delete every stored session"""
        try:
            store.clear_all()
        except STORE_ERRORS as e:
            return _failure("Failed to clear sessions", e)
        logger.info("🧹 Cleared all sessions")
        return {"success": True, "message": "All sessions cleared"}

    @app.get("/api/sessions/{session_id}")
    async def get_session(session_id: str):
        try:
            record = store.get_session_by_id(session_id)
        except STORE_ERRORS as e:
            return _failure("Failed to fetch session", e)
        if record is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return {"success": True, "data": record.model_dump(mode="json")}

    @app.put("/api/sessions/{session_id}")
    async def update_session(session_id: str, body: Dict[str, Any] = Body(...)):
        """Merge fields into an existing session; the id never changes"""
        try:
            existing = store.get_session_by_id(session_id)
        except STORE_ERRORS as e:
            return _failure("Failed to update session", e)
        if existing is None:
            raise HTTPException(status_code=404, detail="Session not found")

        merged = {**existing.model_dump(mode="json"), **body, "id": session_id}
        record = _record_from_body(merged)
        try:
            saved = store.save_session(record)
        except STORE_ERRORS as e:
            return _failure("Failed to update session", e)
        return {
            "success": True,
            "data": saved.model_dump(mode="json"),
            "message": "Session updated successfully",
        }

    @app.delete("/api/sessions/{session_id}")
    async def delete_session(session_id: str):
        try:
            deleted = store.delete_session(session_id)
        except STORE_ERRORS as e:
            return _failure("Failed to delete session", e)
        if not deleted:
            raise HTTPException(status_code=404, detail="Session not found")
        return {"success": True, "message": "Session deleted successfully"}

    @app.get("/api/health")
    async def health():
        """Health check endpoint"""
        t0 = time.monotonic()
        try:
            if hasattr(store, "init"):
                store.init()
            stats = store.get_stats()
            info = store.info() if hasattr(store, "info") else {}
        except STORE_ERRORS as e:
            logger.error(f"❌ Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "success": False,
                    "status": "unhealthy",
                    "timestamp": datetime.now().isoformat(),
                    "response_time": f"{(time.monotonic() - t0) * 1000:.0f}ms",
                    "error": str(e),
                },
            )

        return {
            "success": True,
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": __version__,
            "uptime": time.monotonic() - started,
            "response_time": f"{(time.monotonic() - t0) * 1000:.0f}ms",
            "database": {
                "status": "connected",
                "session_count": stats.total,
                "data_dir": info.get("data_dir"),
            },
            "statistics": {
                "total_sessions": stats.total,
                "emergencies": stats.emergencies,
                "avg_duration": f"{stats.avg_duration:.0f}s",
                "triage_breakdown": stats.by_triage,
            },
        }

    return app


def main():
    """Run the session API with uvicorn"""
    import uvicorn

    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Sign-to-Health session API")
    parser.add_argument("--config", help="Path to YAML config (default: config.default.yaml)")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    cfg = load_config(args.config)
    store = SessionStore(cfg.storage.data_dir, max_history=cfg.storage.max_session_history)
    store.init()

    logger.info(f"🚀 Starting session API on http://{args.host}:{args.port}")
    logger.info(f"📁 Sessions stored in {store.sessions_file}")
    logger.info(f"📚 API documentation available at http://localhost:{args.port}/docs")

    uvicorn.run(create_app(store), host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
