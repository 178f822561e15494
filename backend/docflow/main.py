# backend/docflow/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import bridge, documents, download_logs, sessions
from .database import init_db
from .errors import DocflowError, INTERNAL_ERROR_MESSAGE
from .utils.logging import api_logger

# Create all tables on startup
init_db()

app = FastAPI(title="Docflow API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your actual frontend URL
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(documents.router)
app.include_router(bridge.router)
app.include_router(sessions.router)
app.include_router(download_logs.router)


@app.exception_handler(DocflowError)
async def docflow_error_handler(request: Request, exc: DocflowError):
    if exc.status_code >= 500:
        api_logger.error("Request failed", extra={
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error": exc.message
        })
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(status_code=400, content={"error": "; ".join(details) or "Invalid request"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    api_logger.error("Unhandled error", extra={
        "path": request.url.path,
        "error_type": type(exc).__name__,
        "error": str(exc)
    })
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})


@app.get("/")
async def root():
    return {"message": "Docflow API is running"}
