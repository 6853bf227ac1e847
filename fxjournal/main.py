from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from datetime import datetime
import json
import logging
import time
import traceback
import uuid

from fxjournal import config
from fxjournal.database import db_client, get_storage
from fxjournal.routes import analytics, auth, goals, market_data, strategies, trades, tradingview, uploads, users
from fxjournal.services import upload_service
from fxjournal.services.trade_update_service import trade_update_service
from fxjournal.storage.base import NotFoundError

# Logging - MUST be initialized before middleware
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MAX_LOG_LINE = 100
REDACTED_KEYS = ("password", "access_token")

app = FastAPI(title="FX Journal Backend")

# ----------------- CORS SETUP -----------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def redact(value):
    if isinstance(value, dict):
        return {k: "[REDACTED]" if k in REDACTED_KEYS else redact(v) for k, v in value.items()}
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def format_log_line(method: str, path: str, status: int, duration_ms: int, body: bytes = None) -> str:
    line = f"{method} {path} {status} in {duration_ms}ms"
    if body:
        try:
            line += f" :: {json.dumps(redact(json.loads(body)))}"
        except ValueError:
            pass
    if len(line) > MAX_LOG_LINE:
        line = line[:MAX_LOG_LINE - 1] + "…"
    return line


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    path = request.url.path
    if not path.startswith("/api"):
        return response

    duration_ms = int((time.perf_counter() - start) * 1000)
    body = None
    if not config.IS_PRODUCTION and response.headers.get("content-type", "").startswith("application/json"):
        body = b"".join([chunk async for chunk in response.body_iterator])
        headers = {k: v for k, v in response.headers.items() if k.lower() != "content-length"}
        response = Response(content=body, status_code=response.status_code,
                            headers=headers, media_type=response.media_type)

    logger.info(format_log_line(request.method, path, response.status_code, duration_ms, body))
    return response


# ----------------- Exception handlers -----------------
def error_response(status_code: int, message: str, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", message)
    return error_response(400, message, errors=[{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors])


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return error_response(404, str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_id = uuid.uuid4().hex[:12]
    logger.error(f"Unhandled error {error_id} on {request.method} {request.url.path}: {exc}")
    logger.error(traceback.format_exc())

    extra = {"error_id": error_id}
    if not config.IS_PRODUCTION:
        extra["details"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return error_response(500, "Internal server error", **extra)


# ----------------- Trade change observers -----------------
def recalculate_goals_on_trade_change(action: str, user_id: int, trade_id: int = None):
    storage = get_storage()
    for goal in storage.get_goals_by_user_id(user_id):
        storage.calculate_goal_progress(goal["id"])
    logger.info(f"Recalculated goals for user {user_id} after trade {action}")


_unregister_observers = []


@app.on_event("startup")
async def startup_event():
    logger.info("🚀 Starting FX Journal backend...")
    logger.info(f"🌐 CORS enabled for: {', '.join(config.CORS_ORIGINS)}")
    storage = get_storage()
    logger.info(f"✅ Storage ready ({storage.backend_name})")
    _unregister_observers.append(
        trade_update_service.register_observer(recalculate_goals_on_trade_change, debounce=False)
    )
    logger.info("✅ Server startup complete!")


@app.on_event("shutdown")
async def shutdown_event():
    while _unregister_observers:
        _unregister_observers.pop()()
    db_client.close()


# ----------------- ROOT -----------------
@app.get("/")
def root():
    return {"message": "FX Journal backend is running 🚀"}


@app.get("/health")
def health_check():
    storage = get_storage()
    database = "n/a"
    if storage.backend_name == "mongo":
        try:
            db_client.client.admin.command('ping')
            database = "connected"
        except Exception as e:
            logger.error(f"Health check ping failed: {e}")
            database = "error"
    return {
        "success": True,
        "status": "healthy" if database != "error" else "degraded",
        "storage": storage.backend_name,
        "database": database,
        "timestamp": datetime.now().isoformat(),
    }


# Temp uploads are served here when Cloudinary is unavailable
app.mount(upload_service.UPLOADS_URL_PREFIX, StaticFiles(directory=upload_service.ensure_temp_dir()), name="uploads")

# ----------------- Routers -----------------
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(trades.router, prefix="/api/trades", tags=["Trades"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
app.include_router(strategies.router, prefix="/api/strategies", tags=["Strategies"])
app.include_router(goals.router, prefix="/api/goals", tags=["Goals"])
app.include_router(tradingview.router, prefix="/api/tradingview", tags=["TradingView"])
app.include_router(uploads.router, prefix="/api", tags=["Uploads"])
app.include_router(market_data.router, prefix="/api/twelvedata", tags=["Market Data"])
