import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from academy_billing.api.v1.billing.router import router as billing_router
from academy_billing.api.v1.billing.scheduler import start_billing_scheduler
from academy_billing.api.v1.fee_catalog.router import router as fee_catalog_router
from academy_billing.api.v1.payments.router import router as payments_router
from academy_billing.api.v1.payments.wallet import make_wallet_listener
from academy_billing.api.v1.students.router import router as students_router
from academy_billing.core.config import settings
from academy_billing.core.events import payment_events
from academy_billing.core.logging import configure_logging
from academy_billing.db.session import create_tables, get_session_factory


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, wire the SO Center wallet listener and (optionally) the daily billing tick."""
    configure_logging(settings.log_level)
    await create_tables()

    wallet_listener = payment_events.subscribe(make_wallet_listener(get_session_factory()))
    scheduler_task = None
    if settings.billing_scheduler_enabled:
        scheduler_task = start_billing_scheduler(get_session_factory())
    yield
    if scheduler_task is not None:
        scheduler_task.cancel()
        try:
            await scheduler_task
        except asyncio.CancelledError:
            pass
    payment_events.unsubscribe(wallet_listener)


def create_app() -> FastAPI:
    app = FastAPI(title="Academy Billing", lifespan=lifespan)

    # CORS: allow the admin and SO Center frontends to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(students_router)
    app.include_router(fee_catalog_router)
    app.include_router(payments_router)
    app.include_router(billing_router)

    @app.get("/health", tags=["health"])
    async def health_check():
        return {"status": "ok"}

    return app


app = create_app()
