"""
UCSC Penpals API - application entry point.

Builds one document store, one scheduler, and the services around them,
then wires:
- domain event handlers on the EventBus
- HTTP routers and global error handlers
- background jobs (expired-code sweep, per-message delivery notifications)

Run with:
    uvicorn main:create_app --factory
"""

import logging
import os
from contextlib import asynccontextmanager

from apscheduler.schedulers.base import BaseScheduler
from fastapi import FastAPI

from api.admin import create_admin_router
from api.base import success_response
from api.conversations import create_conversations_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from api.users import create_users_router
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.rate_limiter import RateLimiter
from auth.service import VerificationService
from clients.email_client import EmailGatewayClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import get_admin_password, get_email_config, get_valkey_url
from core.config import PenpalsConfig
from core.event_bus import EventBus
from core.handlers.intro_submitted_handler import handle_intro_submitted
from core.handlers.match_notification_handler import handle_users_matched
from core.handlers.message_sent_handler import handle_message_sent
from core.jobs import register_jobs
from core.notifier import Notifier
from core.scheduler import create_scheduler, list_jobs, stop_scheduler
from core.services.conversation_service import ConversationLedger
from core.services.delivery_scheduler import DeliveryScheduler
from core.services.match_service import MatchRegistry
from core.services.user_service import UserService
from core.store import DocumentStore, JsonFileStore, ValkeyStore
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def build_store(config: PenpalsConfig, valkey: ValkeyClient | None) -> DocumentStore:
    """Pick the persistence backend named by config.store_backend."""
    if config.store_backend == "valkey":
        if valkey is None:
            raise ValueError("store_backend 'valkey' requires a Valkey client")
        logger.info(f"Using Valkey document store (key {config.store_key})")
        return ValkeyStore(valkey, config.store_key, config.store_cache_ttl_seconds)

    logger.info(f"Using JSON file document store ({config.data_file})")
    return JsonFileStore(config.data_file)


def create_app(
    config: PenpalsConfig | None = None,
    auth_config: AuthConfig | None = None,
    store: DocumentStore | None = None,
    email_client: EmailGatewayClient | None = None,
    valkey: ValkeyClient | None = None,
    admin_password: str | None = None,
    scheduler: BaseScheduler | None = None,
) -> FastAPI:
    """
    Application factory.

    Anything not passed in is built from environment and Vault: the email
    gateway credentials, the admin password, and (for the valkey backend)
    the Valkey URL. Tests inject everything.
    """
    config = config or PenpalsConfig.from_env()
    auth_config = auth_config or AuthConfig()

    if valkey is None and config.store_backend == "valkey":
        valkey = ValkeyClient(get_valkey_url())
    if store is None:
        store = build_store(config, valkey)
    if email_client is None:
        email_client = EmailGatewayClient(**get_email_config())
    if admin_password is None:
        admin_password = get_admin_password()
    if scheduler is None:
        scheduler = create_scheduler()

    notifier = Notifier(email_client)
    event_bus = EventBus()
    rate_limiter = RateLimiter(valkey, auth_config) if valkey is not None else None

    verification_service = VerificationService(
        auth_config, config, store, notifier, rate_limiter
    )
    user_service = UserService(config, store, event_bus)
    match_registry = MatchRegistry(store, event_bus)
    ledger = ConversationLedger(config, store, event_bus)
    delivery_scheduler = DeliveryScheduler(config, store, notifier, scheduler)

    event_bus.subscribe("UsersMatched", handle_users_matched(notifier, config))
    event_bus.subscribe("IntroSubmitted", handle_intro_submitted(notifier, config))
    event_bus.subscribe("MessageSent", handle_message_sent(delivery_scheduler))

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info(f"Starting {config.app_name} API...")

        register_jobs(scheduler, verification_service, auth_config)
        scheduler.start()
        # Timers don't survive restarts; rebuild them from persisted messages
        delivery_scheduler.reschedule_all()
        logger.info("Background scheduler started")

        yield

        logger.info(f"Shutting down {config.app_name} API...")
        stop_scheduler(scheduler)
        if valkey is not None:
            valkey.close()

    app = FastAPI(
        title=f"{config.app_name} API",
        description="Slow-mail penpal matching for verified students",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_auth_router(verification_service))
    app.include_router(create_users_router(user_service))
    app.include_router(create_conversations_router(ledger, match_registry))
    app.include_router(
        create_admin_router(admin_password, match_registry, ledger, delivery_scheduler)
    )

    @app.get("/health", tags=["health"])
    def health():
        """Liveness check."""
        return success_response({
            "status": "ok",
            "timestamp": now_utc().isoformat(),
            "scheduler_running": scheduler.running,
        })

    @app.get("/stats", tags=["health"])
    def stats():
        """Informational counts."""
        counts = user_service.stats()
        counts["pending_deliveries"] = len(list_jobs(scheduler, DeliveryScheduler.JOB_ID_PREFIX))
        return success_response(counts)

    app.state.store = store
    app.state.scheduler = scheduler
    app.state.delivery_scheduler = delivery_scheduler
    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
