"""Example FastAPI application shipping request and application logs to Loki.

Run with:
    LOKI_URL=http://localhost:3100 uvicorn examples.fastapi_example:app --reload

Every request is written as a JSON line to stdout and pushed to Loki as
``"GET /users | request_id=... status_code=200 ..."``. Standard library
``logging`` calls are forwarded too, via LokiHandler.
"""

import asyncio
import logging
import os

from fastapi import FastAPI

from lokilog import LoggerConfig, LokiLogger, fields
from lokilog.adapters.frameworks import LokiRequestLoggingMiddleware
from lokilog.adapters.logging import LokiHandler

config = LoggerConfig(
    base_url=os.environ.get("LOKI_URL", "http://localhost:3100"),
    service="fastapi-example",
    environment=os.environ.get("ENVIRONMENT", "development"),
)
logger = LokiLogger(config)

# Forward stdlib logging from application code
app_log = logging.getLogger("example")
app_log.setLevel(logging.INFO)
app_log.addHandler(LokiHandler(logger))

app = FastAPI(title="Loki Logging Example")
app.add_middleware(
    LokiRequestLoggingMiddleware, logger=logger, exclude_paths=["/health"]
)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint; only the request line is shipped."""
    return {"message": "Hello! Check Loki for {source=\"fastapi-example\"}."}


@app.get("/users")
async def get_users() -> dict[str, list[dict[str, str]]]:
    """Users endpoint that also logs through the stdlib logger."""
    await asyncio.sleep(0.05)
    app_log.info("fetched users", extra={"count": 2})
    return {
        "users": [
            {"id": "1", "name": "Alice"},
            {"id": "2", "name": "Bob"},
        ]
    }


@app.get("/orders/{order_id}")
async def get_order(order_id: str) -> dict[str, str]:
    """Logs directly through LokiLogger with typed fields."""
    await asyncio.to_thread(
        logger.info,
        "order viewed",
        fields.string("order_id", order_id),
        fields.duration("lookup", 1_500_000),
    )
    return {"order_id": order_id}


@app.get("/error")
async def error_endpoint() -> dict[str, str]:
    """Raises so the middleware ships an error line with status 500."""
    raise ValueError("Intentional error for demonstration")


@app.get("/health")
async def health() -> dict[str, str]:
    """Excluded from request logging."""
    return {"status": "ok"}
