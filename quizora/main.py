import asyncio
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quizora.background_task import start_background_tasks
from quizora.config import settings
from quizora.log import get_logger
from quizora.model import users, modules, questions, quizzes, results, quiz_windows, verification_codes  # noqa: F401
from quizora.router import (
    auth_router,
    users_router,
    modules_router,
    questions_router,
    quizzes_router,
    windows_router,
)

logger = get_logger("quizora")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} {settings.API_VERSION} ({settings.ENV})")
    background_tasks = start_background_tasks()
    logger.info("Background tasks created: quiz_status_refresh, verification_code_cleanup")

    yield

    for task in background_tasks:
        task.cancel()
    await asyncio.gather(*background_tasks, return_exceptions=True)
    logger.info(f"{settings.PROJECT_NAME} shut down")


app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    version=settings.API_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(dict.fromkeys([settings.FRONTEND_URL, *settings.CORS_ORIGINS])),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)")
    return response


##########################
### Exception handlers ###
##########################
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = {"success": False, **exc.detail}
    else:
        content = {"success": False, "message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )


app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(modules_router, prefix="/api/modules", tags=["Modules"])
app.include_router(questions_router, prefix="/api/questions", tags=["Questions"])
app.include_router(quizzes_router, prefix="/api/quizzes", tags=["Quizzes"])
app.include_router(windows_router, prefix="/api/windows", tags=["Quiz Windows"])


#####################
### Root Endpoint ###
#####################
@app.get("/")
def read_root():
    return {
        "name": settings.PROJECT_NAME,
        "environment": settings.ENV,
        "version": settings.API_VERSION,
        "docs": "/docs",
    }


@app.get("/api/health", tags=["Health"])
def health_check():
    return {
        "success": True,
        "status": "healthy",
        "name": settings.PROJECT_NAME,
        "version": settings.API_VERSION,
        "environment": settings.ENV,
    }
