import time
from typing import Dict, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from aitana.api.deps import get_session_store, get_state, require_admin
from aitana.config import APP_VERSION, LLM_PROVIDER
from aitana.core.health.health_check import uptime_seconds
from aitana.core.logging import get_logger
from aitana.core.session.store import SessionStore
from aitana.core.utils.timezone import now_shop
from aitana.llm import get_all_providers

_log = get_logger("api.status")

router = APIRouter(tags=["Status"])

@router.get("/health")
async def health_check():
    state = get_state()

    results: Dict[str, Any] = {}
    overall = "healthy"
    if state.health_checker:
        checks = await state.health_checker.check_all()
        overall = state.health_checker.overall_state(checks).value
        results = {name: r.to_dict() for name, r in checks.items()}

    sessions = len(state.session_store) if state.session_store is not None else 0
    _log.debug("Health check", status=overall, sessions=sessions)

    return {
        "status": overall,
        "version": APP_VERSION,
        "timestamp": now_shop().isoformat(),
        "uptime_seconds": round(uptime_seconds(), 1),
        "provider": LLM_PROVIDER,
        "providers": get_all_providers(),
        "sessions": sessions,
        "components": results,
    }

@router.get("/metrics")
async def metrics_endpoint():
    state = get_state()
    if state.metrics:
        if state.session_store is not None:
            state.metrics.gauge("sessions_active", "Sessions held in the session store").set(len(state.session_store))
        return PlainTextResponse(
            content=state.metrics.format_all(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )
    return PlainTextResponse(content="", media_type="text/plain")

@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(store: SessionStore = Depends(get_session_store)):
    tokens = store.tokens()
    return {"count": len(tokens), "sessions": tokens}

@router.get("/sessions/{session_id}", dependencies=[Depends(require_admin)])
async def get_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    session = store.get(session_id)
    if session is None:
        return JSONResponse(status_code=404, content={"error": "Unknown session"})
    return session.to_dict()

@router.delete("/sessions/{session_id}", dependencies=[Depends(require_admin)])
async def evict_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    evicted = store.evict(session_id)
    _log.info("Session eviction requested", session=session_id[:8], evicted=evicted)
    return {"session_id": session_id, "evicted": evicted, "at": time.time()}
