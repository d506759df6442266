"""FastAPI application bootstrap for carepolicy."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import get_settings
from .infra.db import init_db
from .infra.logs import configure_logging
from .routers import audit, authorize, consents, emergencies, policy, relations


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="carepolicy API", version="0.1.0", lifespan=lifespan)

    app.include_router(authorize.router, prefix="/authorize", tags=["authorize"])
    app.include_router(consents.router, prefix="/consents", tags=["consents"])
    app.include_router(relations.router, prefix="/relations", tags=["relations"])
    app.include_router(emergencies.router, prefix="/emergencies", tags=["emergencies"])
    app.include_router(audit.router, prefix="/audit", tags=["audit"])
    app.include_router(policy.router, tags=["policy"])

    return app


app = create_app()
