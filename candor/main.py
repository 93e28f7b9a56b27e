from __future__ import annotations

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from candor.api.accounts import router as accounts_router
from candor.api.deps import require_api_key
from candor.api.routes import router as api_router
from candor.core.config import get_settings
from candor.core.errors import CandorError
from candor.core.logging import setup_logging
from candor.services.db import db_session, init_db
from candor.services.seed import seed_reference_data, seed_sample_issues

settings = get_settings()
setup_logging(settings.log_level, settings.log_serialize)

app = FastAPI(title="Candor", version="0.1.0")

app.include_router(api_router, dependencies=[Depends(require_api_key)])
app.include_router(accounts_router, dependencies=[Depends(require_api_key)])

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CandorError)
async def candor_error_handler(request: Request, exc: CandorError) -> JSONResponse:
    logger.warning(
        "{kind} on {method} {path}: {message}",
        kind=exc.__class__.__name__,
        method=request.method,
        path=request.url.path,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"status": "error", "message": exc.message})


@app.on_event("startup")
async def on_startup() -> None:
    init_db()
    with db_session() as session:
        seed_reference_data(session)
        if settings.seed_sample_data:
            seed_sample_issues(session, ttl_days=settings.anonymous_token_ttl_days)
