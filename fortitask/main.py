import logging

from fastapi import FastAPI

from fortitask.core.config import LOG_LEVEL
from fortitask.core.logging_middleware import RequestLoggingMiddleware
from fortitask.db.init_db import init_db
from fortitask.routers.auth import router as auth_router
from fortitask.routers.courses import router as courses_router
from fortitask.routers.submissions import router as submissions_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Fortitask")

# Middleware
app.add_middleware(RequestLoggingMiddleware)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(courses_router, prefix="/courses", tags=["courses"])

# submissions span /courses/{id}/submissions and /submissions/{id}; paths are absolute
app.include_router(submissions_router, tags=["submissions"])
