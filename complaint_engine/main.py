"""
FastAPI application factory.

`create_app` wires the store, classifier, notification feed and scoreboard
onto ``app.state``. The SLA watcher runs for the lifetime of the app.
"""

import functools
import logging
import random
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .classifier import ClassificationSession, CompositeClassifier, LocalClassifier, RemoteClassifier
from .config import Settings, get_settings
from .errors import InvalidInput, NotFound, PermissionDenied
from .gamification import Scoreboard
from .notifications import NotificationCenter
from .observability import get_health_check, metrics_endpoint, setup_logging, setup_metrics_middleware
from .routes import complaints as complaint_routes
from .seed import seed_store
from .sla_watcher import SLAWatcher
from .store import ComplaintStore

logger = logging.getLogger("complaint_engine")


def build_classifier(settings: Settings) -> CompositeClassifier:
    remote = RemoteClassifier(
        api_key=settings.groq_api_key,
        model=settings.groq_model,
        api_url=settings.groq_api_url,
        timeout=settings.classifier_timeout,
    )
    return CompositeClassifier(remote=remote, local=LocalClassifier())


def build_session(settings: Settings, classifier: CompositeClassifier) -> ClassificationSession:
    """Debounced classifier for a form that re-classifies while the user types."""
    return ClassificationSession(
        classifier,
        debounce=settings.classify_debounce_seconds,
        min_length=settings.classify_min_length,
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ComplaintStore] = None,
    classifier: Optional[CompositeClassifier] = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_json)

    store = store if store is not None else ComplaintStore()
    classifier = classifier or build_classifier(settings)
    notifications = NotificationCenter(max_items=settings.notification_limit)
    scoreboard = Scoreboard(store)
    store.subscribe(notifications.handle_event)
    store.subscribe(scoreboard.handle_event)

    if settings.seed_demo_data and len(store) == 0:
        seed_store(store, settings.demo_complaint_count, rng=random.Random())

    watcher = SLAWatcher(store, interval=settings.sla_check_interval_seconds)
    # Complaints that were already late before startup do not raise alerts
    watcher.prime()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        watcher.start()
        try:
            yield
        finally:
            await watcher.stop()
            if classifier.remote is not None:
                await classifier.remote.aclose()

    app = FastAPI(title="Complaint Management API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.classifier = classifier
    app.state.notifications = notifications
    app.state.scoreboard = scoreboard
    app.state.sla_watcher = watcher
    # One debounced session per user; a newer preview supersedes an in-flight one
    app.state.classification_sessions = {}
    app.state.new_classification_session = functools.partial(build_session, settings, classifier)

    setup_metrics_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(complaint_routes.router)

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(request: Request, exc: InvalidInput):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(PermissionDenied)
    async def permission_denied_handler(request: Request, exc: PermissionDenied):
        return JSONResponse(status_code=403, content={"detail": str(exc)})

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return get_health_check(len(store), notifications.unread_count)

    @app.get("/metrics")
    def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return metrics_endpoint()

    logger.info("Application created (env=%s, remote classifier=%s)", settings.environment,
                classifier.remote is not None and classifier.remote.enabled)
    return app
