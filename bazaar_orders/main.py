# bazaar_orders/main.py
from fastapi import FastAPI
import uvicorn

from bazaar_orders.api.routers import health, orders
from bazaar_orders.data.backend import DataBackend
from bazaar_orders.utils.logging import get_logger

logger = get_logger(__name__)


def create_app(backend: DataBackend | None = None) -> FastAPI:
    backend = backend or DataBackend.from_settings()

    logger.info("=" * 60)
    logger.info(f"Initializing order storage (backend: {backend.mode.value})")
    try:
        backend.init_schema()
    except Exception as e:
        logger.error(f"Failed to initialize order storage: {e}")
        raise
    logger.info("=" * 60)

    app = FastAPI(
        title="Bazaar Orders Service",
        version="1.0.0",
    )
    app.state.backend = backend

    # Include routers
    app.include_router(health.router)
    app.include_router(orders.router)

    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
