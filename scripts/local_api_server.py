"""
FastAPI Server for Local Development

Exposes both gateway entry points over HTTP with SES mocked by moto:
- POST /inbound  raw MIME body, runs the inbound pipeline
- ANY  /send     the outbound HTTP trigger (only POST sends)
- GET  /stats    number of messages SES has "sent"

Usage:
    python -m scripts.local_api_server
    curl --data-binary @message.eml 'localhost:8000/inbound?sender=a@example.com'
    curl -d 'hello' localhost:8000/send
"""

import os
from contextlib import asynccontextmanager

# Set environment for local mode BEFORE any other imports
os.environ.setdefault("GATEWAY_ENVIRONMENT", "development")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

import boto3
import structlog
from fastapi import FastAPI, Query, Request
from fastapi.responses import PlainTextResponse
from moto import mock_aws

# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()

from gateway.shared.config import get_settings
from gateway.shared.tools.ses import SesInboundMessage, SesMailSender
from lambdas.process_inbound_email.orchestrator import handle_inbound
from lambdas.send_outbound_email.handler import HttpRequest, handle_request

# Clear settings cache so the env vars above take effect
get_settings.cache_clear()

mock = mock_aws()


def setup_local_ses():
    """Verify the worker identity so SES accepts it as a source."""
    settings = get_settings()
    ses = boto3.client("ses", region_name=settings.aws_region)
    ses.verify_email_identity(EmailAddress=settings.worker_address)
    log.info("ses_identity_verified", email=settings.worker_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    mock.start()
    setup_local_ses()
    yield
    mock.stop()
    log.info("shutting_down")


app = FastAPI(title="Email Gateway (local)", lifespan=lifespan)


@app.post("/inbound")
async def inbound(
    request: Request,
    sender: str = Query(..., description="Envelope sender"),
    recipient: str = Query(default="gateway@example.com", description="Envelope recipient"),
) -> dict:
    """Run a raw MIME message through the inbound pipeline."""
    settings = get_settings()
    message = SesInboundMessage(
        mail={"source": sender, "destination": [recipient]},
        raw=await request.body(),
        settings=settings,
    )
    outcome = await handle_inbound(message, settings)
    return {"disposition": message.disposition, **outcome.to_dict()}


@app.api_route("/send", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
async def send(request: Request) -> PlainTextResponse:
    """Outbound trigger; the handler answers 405 for anything but POST."""
    settings = get_settings()
    body = (await request.body()).decode("utf-8", errors="replace")
    response = await handle_request(
        HttpRequest(method=request.method, body=body),
        SesMailSender(settings),
        settings,
    )
    return PlainTextResponse(response.body, status_code=response.status_code, headers=response.headers)


@app.get("/stats")
def stats() -> dict:
    settings = get_settings()
    ses = boto3.client("ses", region_name=settings.aws_region)
    quota = ses.get_send_quota()
    return {"sent_last_24_hours": int(quota["SentLast24Hours"])}


if __name__ == "__main__":
    import uvicorn

    log.info("starting_local_api_server", host="0.0.0.0", port=8000)
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
