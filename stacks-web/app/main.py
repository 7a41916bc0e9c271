import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app import config
from app.db import DataSourceUnavailable
from app.jobs import ExportLaunchError
from app.log import configure_logging
from app.routers import export, genotypes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: logging, then make sure the default database has a schema
    from app.db import close_all, init_db

    configure_logging()
    init_db(config.DEFAULT_DATABASE)
    logger.info("Default database '%s' ready in %s", config.DEFAULT_DATABASE, config.DB_DIR)
    yield
    close_all()


app = FastAPI(title="Stacks Genotype Viewer", lifespan=lifespan)


@app.exception_handler(DataSourceUnavailable)
async def data_source_unavailable(request: Request, exc: DataSourceUnavailable):
    logger.warning("Data source unavailable for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(ExportLaunchError)
async def export_launch_failed(request: Request, exc: ExportLaunchError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(genotypes.router)
app.include_router(export.router)

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
