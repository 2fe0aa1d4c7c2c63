from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gradeflow.core.config import settings
from gradeflow.core.dependencies import get_workspace
from gradeflow.core.errors import (
    EmptyUploadError,
    PersistenceError,
    PersistenceFailure,
    RecordNotFoundError,
    UnsupportedFileTypeError,
    ValidationError,
)
from gradeflow.core.logging import configure_logging
from gradeflow.modules.assignments.router import router as assignments_router
from gradeflow.modules.classes.router import router as classes_router
from gradeflow.modules.submissions.router import router as submissions_router
from gradeflow.utils.response import error_response

configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    description="Assignment, class and submission batch management",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content=error_response(exc, violations=[v.to_dict() for v in exc.violations]),
    )


@app.exception_handler(RecordNotFoundError)
async def not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_response(exc, redirect=exc.redirect),
    )


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    if exc.reason == PersistenceFailure.CONSTRAINT:
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_502_BAD_GATEWAY
    return JSONResponse(status_code=status_code, content=error_response(exc))


@app.exception_handler(EmptyUploadError)
async def empty_upload_handler(request: Request, exc: EmptyUploadError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_response(exc))


@app.exception_handler(UnsupportedFileTypeError)
async def unsupported_file_handler(request: Request, exc: UnsupportedFileTypeError):
    return JSONResponse(
        status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        content=error_response(exc, rejected=exc.rejected, accepted=exc.accepted),
    )


# Root route
@app.get("/")
async def root():
    return {"name": settings.APP_NAME, "version": "1.0.0", "status": "running"}


# Health check route
@app.get("/health")
async def health_check():
    """Check if the service and database connection are healthy"""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        workspace = await get_workspace()
        await workspace.store.select("classes", limit=1)
    except (RuntimeError, PersistenceError) as e:
        return {"status": "unhealthy", "database": f"error: {str(e)}", "timestamp": timestamp}
    return {"status": "healthy", "database": "connected", "timestamp": timestamp}


# Include routers
app.include_router(classes_router, prefix="/classes", tags=["Classes"])
app.include_router(assignments_router, prefix="/classes", tags=["Assignments"])
app.include_router(submissions_router, prefix="/classes", tags=["Submissions"])
