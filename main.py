# main.py
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND, HTTP_405_METHOD_NOT_ALLOWED

# --- Environment loading ---
load_dotenv()

# --- Local Module Imports ---
# These must come after the dotenv load
from dependencies import get_task_store
from errors import TaskStoreError
from logging_setup import setup_logging
from routers import system, tasks

logger = logging.getLogger(__name__)

# Directory holding static/ and templates/. They are not installed as package
# data, so installs outside the source tree must point WEB_ROOT at a checkout.
WEB_ROOT = Path(os.getenv("WEB_ROOT") or Path(__file__).parent)
API_PREFIX = "/api"
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ENDPOINTS = [
    ("GET", "/api/tasks", "Get all tasks"),
    ("POST", "/api/tasks", "Add new task"),
    ("PUT", "/api/tasks/{id}", "Toggle task completion"),
    ("DELETE", "/api/tasks/{id}", "Delete specific task"),
    ("DELETE", "/api/tasks/clear/completed", "Clear all completed tasks"),
    ("DELETE", "/api/tasks", "Delete all tasks"),
]

# --- App Lifecycle (Lifespan) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Creates the tasks file on startup if it is missing and reports what is served.
    """
    store = get_task_store()
    existing = store.list_tasks()
    logger.info("Initialized with %d existing tasks", len(existing))
    logger.info("Tasks file: %s", store.storage.path.resolve())
    logger.info("Available endpoints:")
    for method, path, description in ENDPOINTS:
        logger.info("  %-6s %-27s - %s", method, path, description)

    yield

    logger.info("Application shutting down...")


# --- FastAPI App Initialization ---
app = FastAPI(
    title="Task List",
    description="A minimal to-do list backed by a single JSON file.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error Handling ---
@app.exception_handler(TaskStoreError)
async def task_store_error_handler(request: Request, exc: TaskStoreError):
    if exc.status_code >= 500:
        logger.error("Error in %s %s: %s", request.method, request.url.path, exc.detail)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("%s %s rejected: invalid request body", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={
            "error": "validation_error",
            "detail": "Task text is required and must be a non-empty string",
        },
    )

@app.exception_handler(StarletteHTTPException)
async def api_not_found_handler(request: Request, exc: StarletteHTTPException):
    path = request.url.path
    in_api = path == API_PREFIX or path.startswith(API_PREFIX + "/")
    if in_api and exc.status_code in (HTTP_404_NOT_FOUND, HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(
            status_code=HTTP_404_NOT_FOUND,
            content={"error": "API endpoint not found", "path": path, "method": request.method},
        )
    return await http_exception_handler(request, exc)

# --- Mount Static Files ---
app.mount("/static", StaticFiles(directory=WEB_ROOT / "static"), name="static")

# --- Include API Routers ---
app.include_router(tasks.router, prefix=API_PREFIX)
app.include_router(system.router, prefix=API_PREFIX)

# --- Root Endpoint ---
@app.get("/", include_in_schema=False)
async def read_root():
    """Serves the main index.html file."""
    return FileResponse(WEB_ROOT / "templates" / "index.html")


def run():
    setup_logging(LOG_LEVEL)
    logger.info("Server URL: http://localhost:%d", PORT)
    uvicorn.run(app, host=HOST, port=PORT, log_config=None)

# --- Main Entry Point ---
if __name__ == "__main__":
    run()
