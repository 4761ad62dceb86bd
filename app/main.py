from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.coupons.router import router as coupons_router
from app.api.v1.fees.router import router as fees_router
from app.api.v1.paystack.client import build_paystack_client
from app.api.v1.paystack.router import router as paystack_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.paystack_client = build_paystack_client()
    try:
        yield
    finally:
        await app.state.paystack_client.aclose()
        await engine.dispose()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="School Fees Backend", lifespan=lifespan)

    # CORS: allow the dashboard frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(fees_router)
    app.include_router(coupons_router)
    app.include_router(paystack_router)

    return app


app = create_app()
