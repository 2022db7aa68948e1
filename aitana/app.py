import asyncio
import os
import time
import traceback
from contextlib import asynccontextmanager
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from aitana.config import (
    APP_VERSION,
    CALENDAR_ID,
    GOOGLE_CALENDAR_KEY,
    GOOGLE_SHEETS_KEY,
    HOST,
    INSTRUCTION_TEMPLATE_PATH,
    LLM_PROVIDER,
    PORT,
    PUBLIC_DIR,
    SESSION_IDLE_TIMEOUT,
    SESSION_REAP_INTERVAL,
    SHUTDOWN_HTTP_POOL_TIMEOUT,
    SHUTDOWN_TASK_TIMEOUT,
    SPREADSHEET_ID,
    TELEGRAM_BOT_TOKEN,
    TELEGRAM_CHAT_ID,
    WINDOW_LIMIT,
    get_cors_origins,
)
from aitana.api import (
    appointments_router,
    chat_router,
    get_state,
    init_state,
    notify_router,
    roster_router,
    status_router,
)
from aitana.channels.telegram import TelegramRelay
from aitana.core.booking.handoff import HandoffDispatcher
from aitana.core.booking.instructions import load_instructions
from aitana.core.chat_handler import ChatHandler
from aitana.core.errors import AitanaError
from aitana.core.health.health_check import HealthChecker, HealthResult, HealthState, configured
from aitana.core.logging import get_logger, get_request_id, reset_request_id, set_request_id
from aitana.core.logging.error_monitor import error_monitor
from aitana.core.session.store import InMemorySessionStore
from aitana.core.telemetry.metrics import build_registry
from aitana.core.utils.http_pool import close_all
from aitana.integrations.google import (
    CALENDAR_SCOPES,
    SHEETS_SCOPES,
    CalendarClient,
    ServiceAccountToken,
    SheetsClient,
)
from aitana.llm import get_gateway, get_provider

_log = get_logger("app")


async def _reap_sessions(store: InMemorySessionStore, interval: float, metrics=None) -> None:
    """Drop idle sessions every ``interval`` seconds."""
    while True:
        await asyncio.sleep(interval)
        store.reap_idle()
        if metrics is not None:
            metrics.gauge("sessions_active", "Sessions held in the session store").set(len(store))


def _build_google_clients() -> tuple[SheetsClient | None, CalendarClient | None]:
    sheets = calendar = None
    if GOOGLE_SHEETS_KEY and SPREADSHEET_ID:
        try:
            token = ServiceAccountToken.from_key(GOOGLE_SHEETS_KEY, SHEETS_SCOPES, "sheets")
            sheets = SheetsClient(token, SPREADSHEET_ID)
        except AitanaError as e:
            _log.warning("APP sheets disabled", error=e.message)
    if GOOGLE_CALENDAR_KEY and CALENDAR_ID:
        try:
            token = ServiceAccountToken.from_key(GOOGLE_CALENDAR_KEY, CALENDAR_SCOPES, "calendar")
            calendar = CalendarClient(token, CALENDAR_ID)
        except AitanaError as e:
            _log.warning("APP calendar disabled", error=e.message)
    return sheets, calendar


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build services on startup, release them on shutdown."""
    state = get_state()
    state.shutdown_event = asyncio.Event()
    state.background_tasks = []

    metrics = build_registry()
    store = InMemorySessionStore(idle_timeout=SESSION_IDLE_TIMEOUT)

    relay = None
    if TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID:
        relay = TelegramRelay(TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID)
    else:
        _log.warning("APP telegram relay not configured, handoffs will not be delivered")

    sheets, calendar = _build_google_clients()

    dispatcher = HandoffDispatcher(relay, calendar=calendar, error_monitor=error_monitor, metrics=metrics)

    handler = None
    try:
        gateway = get_gateway(LLM_PROVIDER)
        handler = ChatHandler(
            store=store,
            gateway=gateway,
            dispatcher=dispatcher,
            instructions=load_instructions(INSTRUCTION_TEMPLATE_PATH),
            window_limit=WINDOW_LIMIT,
            metrics=metrics,
        )
    except Exception as e:
        _log.error("APP chat handler init failed", provider=LLM_PROVIDER, error=str(e))

    checker = HealthChecker()

    async def _check_sessions() -> HealthResult:
        return HealthResult(HealthState.HEALTHY, 0.0, f"{len(store)} sessions")

    async def _check_gateway() -> HealthResult:
        if handler is None:
            return HealthResult(HealthState.UNHEALTHY, 0.0, "gateway not initialized")
        if type(handler.gateway).is_circuit_open():
            return HealthResult(HealthState.DEGRADED, 0.0, "circuit open")
        provider = get_provider(LLM_PROVIDER)
        if not provider.available:
            return HealthResult(HealthState.DEGRADED, 0.0, f"{provider.name} credentials missing")
        return HealthResult(HealthState.HEALTHY, 0.0, provider.name)

    checker.register("sessions", _check_sessions)
    checker.register("gateway", _check_gateway)
    checker.register("relay", configured("telegram relay", relay))
    checker.register("sheets", configured("google sheets", sheets))
    checker.register("calendar", configured("google calendar", calendar))

    init_state(
        session_store=store,
        chat_handler=handler,
        relay=relay,
        sheets=sheets,
        calendar=calendar,
        metrics=metrics,
        health_checker=checker,
    )

    if SESSION_IDLE_TIMEOUT is not None:
        state.background_tasks.append(asyncio.create_task(_reap_sessions(store, SESSION_REAP_INTERVAL, metrics)))

    _log.info(
        "APP starting",
        version=APP_VERSION,
        pid=os.getpid(),
        provider=LLM_PROVIDER,
        window=WINDOW_LIMIT,
        idle_timeout=SESSION_IDLE_TIMEOUT,
        relay="on" if relay else "off",
        sheets="on" if sheets else "off",
        calendar="on" if calendar else "off",
    )
    _log.info("APP ready", host=HOST, port=PORT)

    yield

    _log.info("APP shutdown", reason="lifespan_end")
    state.shutdown_event.set()

    for task in list(state.background_tasks):
        if not task.done():
            task.cancel()
            try:
                await asyncio.wait_for(task, timeout=SHUTDOWN_TASK_TIMEOUT)
            except (asyncio.CancelledError, asyncio.TimeoutError):
                pass
    _log.info("APP background tasks cleaned", count=len(state.background_tasks))

    if relay is not None:
        await relay.close()

    try:
        await asyncio.wait_for(close_all(), timeout=SHUTDOWN_HTTP_POOL_TIMEOUT)
    except asyncio.TimeoutError:
        _log.warning("APP HTTP pool close timed out")

    state.reset()
    _log.info("APP shutdown complete")

app = FastAPI(title="Aitana booking assistant", version=APP_VERSION, lifespan=lifespan)

@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or uuid4().hex[:12]
    request.state.request_id = req_id
    token = set_request_id(req_id)
    t0 = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
    finally:
        reset_request_id(token)
        elapsed = time.perf_counter() - t0
        _state = get_state()
        if _state.metrics:
            route = request.scope.get("route")
            path = getattr(route, "path", "unmatched")
            _state.metrics.counter("http_requests_total", "HTTP requests").inc(
                method=request.method, path=path, status=str(status_code)
            )
            _state.metrics.histogram("http_request_duration_seconds", "HTTP request latency").observe(elapsed)
    response.headers["X-Request-ID"] = req_id
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(status_router)
app.include_router(chat_router)
app.include_router(notify_router)
app.include_router(roster_router)
app.include_router(appointments_router)

@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/welcome.html")

if PUBLIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=PUBLIC_DIR), name="public")
    _log.debug("APP static files mounted", path=str(PUBLIC_DIR))


def _error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    req_id = getattr(request.state, "request_id", None) or get_request_id()
    content.setdefault("path", str(request.url.path))
    content.setdefault("request_id", req_id)
    if status_code >= 500:
        _state = get_state()
        if _state.metrics:
            _state.metrics.counter("http_errors_total", "HTTP errors").inc()
    headers = {"X-Request-ID": req_id} if req_id else None
    return JSONResponse(status_code=status_code, headers=headers, content=content)

@app.exception_handler(AitanaError)
async def aitana_error_handler(request: Request, exc: AitanaError):
    _log.warning(
        "APP request failed",
        path=str(request.url.path),
        error_type=type(exc).__name__,
        code=exc.code,
        error=exc.message,
    )
    return _error_response(request, exc.http_status, {
        "error": exc.message,
        "code": exc.code,
        "type": type(exc).__name__,
        "is_retryable": exc.is_retryable,
    })

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    return _error_response(request, 400, {
        "error": "Invalid request body",
        "code": "VALIDATION",
        "detail": first.get("msg", ""),
    })

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Last resort: every unhandled failure still gets a JSON error body."""
    _log.error(
        "APP unhandled exception",
        path=str(request.url.path),
        error_type=type(exc).__name__,
        error=str(exc),
        traceback=traceback.format_exc(),
    )
    return _error_response(request, 500, {
        "error": "Internal Server Error",
        "message": str(exc) if str(exc) else "Unknown error",
        "type": type(exc).__name__,
    })


if __name__ == "__main__":
    import logging

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    uvicorn.run(
        "aitana.app:app",
        host=HOST,
        port=PORT,
        log_level="warning",
        reload=False,
    )
