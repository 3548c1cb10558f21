import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import Settings, settings as default_settings
from core.exception_handler import setup_exception_handlers
from core.log_config import setup_logging
from db.database import build_engine, build_session_maker, create_db_and_tables
from routers.kits import router as kits_router
from routers.parts_management import router as parts_management_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(
            settings.database_url,
            echo=settings.database_echo,
            isolation_level=settings.database_isolation_level,
        )
        app.state.engine = engine
        app.state.session_maker = build_session_maker(engine)
        await create_db_and_tables(engine)
        logger.info("database ready")
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title="Warehouse Inventory API",
        description="Parts, kits and multi-location stock",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    # Kit recipes and kit stock
    app.include_router(kits_router, prefix="/kits", tags=["kits"])
    app.include_router(parts_management_router, prefix="/parts-management", tags=["parts-management"])

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
