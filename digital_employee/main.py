"""
FastAPI application hosting the mailbox poller.
"""

import asyncio
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import BaseModel, ValidationError

from digital_employee import __version__
from digital_employee.catalog import DEFAULT_MAPPINGS, PatternCatalog
from digital_employee.classifiers import FuzzyIntentMatcher
from digital_employee.config import Settings, get_settings
from digital_employee.core.dedup import ProcessedIdentities
from digital_employee.core.logging import configure_logging, get_logger
from digital_employee.handlers import build_registry
from digital_employee.processors import DispatchCoordinator, MailboxPoller
from digital_employee.services.analysis import StatementAnalyzer
from digital_employee.services.imap import IMAPClient
from digital_employee.services.smtp import SMTPSender

log = get_logger(__name__)


def build_poller(settings: Settings) -> MailboxPoller:
    """Wire up the full pipeline from settings."""
    registry = build_registry(
        analyzer=StatementAnalyzer(api_key=settings.gemini_api_key, model=settings.gemini_model),
        currency=settings.currency,
    )
    catalog = PatternCatalog(DEFAULT_MAPPINGS, known_actions=registry.actions())
    smtp_user, smtp_password = settings.smtp_login

    dispatcher = DispatchCoordinator(
        matcher=FuzzyIntentMatcher(catalog, threshold=settings.similarity_threshold),
        registry=registry,
        sender=SMTPSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=smtp_user,
            password=smtp_password,
            sender_address=settings.sender_address,
            sender_name=settings.sender_name,
            use_ssl=settings.smtp_secure,
        ),
    )

    return MailboxPoller(
        client=IMAPClient(
            host=settings.imap_host,
            port=settings.imap_port,
            user=settings.imap_user,
            password=settings.imap_password,
            use_tls=settings.imap_tls,
            poll_interval=settings.poll_interval_seconds,
        ),
        dispatcher=dispatcher,
        subject_prefix=settings.subject_prefix,
        folder=settings.imap_folder,
        since=settings.start_date,
        reconnect_delay=settings.reconnect_delay_seconds,
        idle_timeout=settings.idle_timeout_seconds,
        flush_interval=settings.flush_interval_seconds,
        processed=ProcessedIdentities(settings.processed_cache_size),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings = get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.json_logs)
    log.info(
        "application_starting",
        version=__version__,
        imap=f"{settings.imap_host}:{settings.imap_port}",
        smtp=f"{settings.smtp_host}:{settings.smtp_port}",
        mailbox=settings.imap_user,
        similarity_threshold=settings.similarity_threshold,
        start_date=settings.start_date.isoformat() if settings.start_date else None,
    )

    poller = build_poller(settings)
    app.state.poller = poller
    task = asyncio.create_task(poller.run(), name="mailbox-poller")

    yield

    log.info("application_stopping")
    await poller.stop()
    try:
        await asyncio.wait_for(task, timeout=10)
    except asyncio.TimeoutError:
        task.cancel()
    log.info("application_stopped")


app = FastAPI(
    title="Digital Employee",
    description="Email-driven task router",
    version=__version__,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    poller_state: str


class StatsResponse(BaseModel):
    swept: int = 0
    fetched: int = 0
    duplicates: int = 0
    ignored: int = 0
    dispatched: int = 0
    replied: int = 0
    reply_failed: int = 0
    parse_errors: int = 0
    processed_identities: int = 0
    pending_dispatches: int = 0


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    poller: MailboxPoller = app.state.poller
    return HealthResponse(status="healthy", version=__version__, poller_state=poller.state.value)


@app.get("/stats", response_model=StatsResponse)
async def stats():
    """Poller counters for this process."""
    poller: MailboxPoller = app.state.poller
    return StatsResponse(**poller.snapshot())


def run() -> None:
    """Console entry point: validate configuration, then serve."""
    import uvicorn

    try:
        settings = get_settings()
    except ValidationError as e:
        configure_logging()
        missing = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        log.error("configuration_invalid", fields=missing)
        sys.exit(1)

    configure_logging(log_level=settings.log_level, json_output=settings.json_logs)
    uvicorn.run(app, host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    run()
