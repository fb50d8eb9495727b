import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from db.database import create_schema
from db.repository import build_memory_repository
from auth.routes import router as auth_router
from api.meditation import router as meditation_router
from api.sacred_geometry import router as sacred_geometry_router
from api.affirmations import router as affirmations_router
from api.chants import router as chants_router
from api.neural import router as neural_router
from api.heart_galaxy import router as heart_galaxy_router
from api.chat import router as chat_router
from api.favorites import router as favorites_router
from api.preferences import router as preferences_router
from api.responses import error, success
from services.errors import ServiceError
from utils.datetime_utils import utcnow

logging.basicConfig(
    level=getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

settings.validate_security_configuration()

app = FastAPI(title=settings.APP_NAME, version="1.0.0")

if settings.uses_memory_storage:
    app.state.memory_repository = build_memory_repository()
else:
    create_schema()

logger.info("Content generation mode: %s", settings.resolved_generation_mode)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    if not settings.SECURITY_HEADERS_ENABLED:
        return response
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
    response.headers["Content-Security-Policy"] = settings.SECURITY_CSP
    return response


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error(exc.message))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        problems.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    message = "; ".join(problems) or "Invalid request"
    return JSONResponse(
        status_code=400,
        content=error(message, errors=jsonable_encoder(exc.errors())),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error(str(exc) or exc.__class__.__name__))


# Routers
app.include_router(auth_router, prefix="/api")
app.include_router(meditation_router, prefix="/api")
app.include_router(sacred_geometry_router, prefix="/api")
app.include_router(affirmations_router, prefix="/api")
app.include_router(chants_router, prefix="/api")
app.include_router(neural_router, prefix="/api")
app.include_router(heart_galaxy_router, prefix="/api")
app.include_router(chat_router, prefix="/api")
app.include_router(favorites_router, prefix="/api")
app.include_router(preferences_router, prefix="/api")


@app.get("/api/health")
def health_check():
    return success(
        {"app": settings.APP_NAME, "generation_mode": settings.resolved_generation_mode},
        message="NeuraPeace AI consciousness expansion system operational",
        timestamp=utcnow().isoformat() + "Z",
        dimensions_active=5,
    )


# Serve frontend static files (in production)
static_dir = Path(__file__).parent / "static"
if static_dir.exists():
    app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
