from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.core.config import get_settings
from app.core.lifespan import lifespan
from app.api.v1.routers.products import router as products_router
from app.api.v1.routers.health import router as health_router
from app.api.v1.routers.recommendations import router as recommendations_router
from app.api.v1.routers.queries import router as queries_router
from app.core.logging import configure_logging
from app.domain.errors import NotFoundError, CollaboratorUnavailableError, ValidationFailureError

from fastapi.middleware.cors import CORSMiddleware
import logging, os

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV, e.g. ALLOWED_ORIGINS="https://shop.example.com,https://admin.example.com"
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = [o.strip() for o in allowed_origins_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["http://localhost:3000"],
    allow_credentials=False,                        # "*" headers + credentials is not allowed
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)


# ------- Domain errors -> HTTP -------
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc), "product_id": exc.product_id})


@app.exception_handler(ValidationFailureError)
async def validation_failure_handler(request: Request, exc: ValidationFailureError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(CollaboratorUnavailableError)
async def collaborator_unavailable_handler(request: Request, exc: CollaboratorUnavailableError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=503, content={"detail": f"{exc.collaborator} unavailable"})


# ------- Routes -------
app.include_router(health_router)
app.include_router(products_router)          # catalog CRUD + reindex
app.include_router(recommendations_router)   # engine intents
app.include_router(queries_router)           # RAG answers
