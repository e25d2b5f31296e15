"""
FastAPI application entry point.
"""

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from review_bot import __version__
from review_bot.api import webhooks
from review_bot.config import get_settings
from review_bot.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

app = FastAPI(
    title="Code Review Bot",
    description="Reviews GitHub pull requests and files code-health triage issues",
    version=__version__,
)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "version": __version__}


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Root endpoint."""
    return "Code Review Bot\n\nConfigure GitHub webhook to POST /webhook"


app.include_router(webhooks.router)


@app.on_event("startup")
async def startup_event():
    """Configure logging from settings on application startup."""
    setup_logging(get_settings().log_level)
    logger.info("Starting Code Review Bot")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Code Review Bot")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
