import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv
import uvicorn

from database import check_connection
from logging_config import configure_logging
from routers import (
    analytics_router,
    banks_router,
    dashboard_router,
    groups_router,
    members_router,
    messages_router,
    payment_logs_router,
    payment_requests_router,
    payments_router,
)
from services import KasmoniError

# Load .env
load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Kasmoni API starting")
    yield


# App instance
app = FastAPI(title="Kasmoni API", lifespan=lifespan)

# CORS
origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KasmoniError)
async def kasmoni_error_handler(request: Request, exc: KasmoniError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# 404 Fallback
@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"success": False, "error": "Route not found"})
    return await http_exception_handler(request, exc)


@app.get("/api/health")
def health():
    database_ok = check_connection()
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={"status": "ok" if database_ok else "degraded", "database": database_ok},
    )


app.include_router(members_router)
app.include_router(groups_router)
app.include_router(payments_router)
app.include_router(payment_requests_router)
app.include_router(payment_logs_router)
app.include_router(dashboard_router)
app.include_router(analytics_router)
app.include_router(banks_router)
app.include_router(messages_router)

if __name__ == "__main__":
    port = int(os.getenv("PORT", 10000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
