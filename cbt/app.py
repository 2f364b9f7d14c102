"""Main FastAPI application."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cbt.database import init_db
from cbt.routes import assessments
from core.logging_setup import setup_console_logging

setup_console_logging()

app = FastAPI(title="CBT Assessment API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize database on startup."""
    init_db()


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# Include routers
app.include_router(assessments.router)
