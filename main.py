import asyncio
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import build_notification_pipeline
from app.config import get_settings
from app.infrastructure.database import SessionLocal, engine, initialize_database
from app.infrastructure.email import EmailDispatcher
from app.infrastructure.notifications import notification_publisher
from app.interfaces.api.routes import register_routes
from app.logging_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the notification pipeline on startup and stop it on shutdown."""

    configure_logging()
    initialize_database()

    email_dispatcher = EmailDispatcher()
    notification_publisher.bind_loop(asyncio.get_running_loop())
    pipeline = build_notification_pipeline(
        session_factory=app.state.session_factory,
        email_dispatcher=email_dispatcher,
        realtime_publisher=notification_publisher,
    )
    pipeline.start()
    app.state.notification_pipeline = pipeline
    app.state.event_publisher = pipeline.publisher

    yield

    pipeline.shutdown()
    email_dispatcher.shutdown(wait=True)
    notification_publisher.bind_loop(None)
    engine.dispose()


def create_app(session_factory: Callable[[], Session] | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``session_factory`` backs the notification consumers and the websocket
    handler; it defaults to :data:`SessionLocal`.
    """

    app = FastAPI(title="Notification Service", lifespan=lifespan)
    app.state.session_factory = session_factory or SessionLocal

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[get_settings().frontend_base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
