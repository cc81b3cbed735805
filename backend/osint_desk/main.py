import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

import osint_desk.models  # noqa: F401  (registers tables on SQLModel.metadata)
from osint_desk.api.routes.api_configs import router as api_configs_router
from osint_desk.api.routes.cases import router as cases_router
from osint_desk.api.routes.entities import router as entities_router
from osint_desk.api.routes.metrics import router as metrics_router
from osint_desk.api.routes.relationships import router as relationships_router
from osint_desk.api.routes.search import router as search_router
from osint_desk.api.routes.stats import router as stats_router
from osint_desk.core.config import settings
from osint_desk.core.errors import setup_exception_handlers
from osint_desk.db import session as db_session
from osint_desk.metrics.prometheus import api_request_latency_seconds

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="OSINT Desk API",
    version="1.0.0",
    description="Case, entity and relationship store for OSINT investigations, with a search proxy",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)


@app.on_event("startup")
def on_startup():
    SQLModel.metadata.create_all(db_session.engine)
    logger.info("%s started", settings.project_name)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.perf_counter()
    response: Response
    status = "unknown"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    finally:
        dt = time.perf_counter() - start
        # label by route template, not raw path, to keep ids out of label values
        route = getattr(request.scope.get("route"), "path", request.url.path)
        api_request_latency_seconds.labels(route=route, method=request.method, status=status).observe(dt)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(cases_router, prefix="/api")
app.include_router(entities_router, prefix="/api")
app.include_router(relationships_router, prefix="/api")
app.include_router(api_configs_router, prefix="/api")
app.include_router(search_router, prefix="/api")
app.include_router(stats_router, prefix="/api")
app.include_router(metrics_router)
