import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from core.config import configure_logging
from core.database import engine, Base, utcnow
from core.errors import LinkHubError
from api import auth, links, profiles, users

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="LinkHub API", version="1.0")
# Создаем таблицы, если они ещё не созданы
Base.metadata.create_all(bind=engine)
logger.info("Database schema ready")

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(links.router, prefix="/api/links", tags=["links"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["profiles"])


@app.exception_handler(LinkHubError)
async def linkhub_error_handler(request: Request, exc: LinkHubError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "code": "validation_error"},
    )


@app.get("/api/health", tags=["health"])
def health():
    return {"status": "ok", "timestamp": utcnow().isoformat()}
