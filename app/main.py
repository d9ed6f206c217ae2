# app/main.py
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

import logging

from app.configs import config, get_setting
from app.errors import CyclicTreeError, DuplicateUnitCode, StoreUnavailable
from app.routes import communes, convert, districts, provinces, tree, units
from app.services.db import close_database, init_database
from fastapi.middleware.cors import CORSMiddleware

app_config = config.get("app", {})

# Configure logging
logging.basicConfig(
    level=str(get_setting("LOG_LEVEL", "app", "log_level", "INFO")).upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles startup and shutdown events for the application.
    Connects to MongoDB and initializes Beanie ODM.
    """
    logger.info("Application startup initiated...")
    try:
        await init_database()
        logger.info("MongoDB connection and Beanie initialization successful.")
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB or initialize Beanie: {e}")
        raise

    yield

    logger.info("Application shutdown initiated...")
    await close_database()


app = FastAPI(
    title=get_setting("APP_NAME", "app", "project_name", "AddressKit API"),
    debug=str(get_setting("DEBUG", "app", "debug_mode", False)).lower() == "true",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.get("cors_origins", []),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Domain error handlers ---


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error(f"{request.method} {request.url.path}: record store unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Record store unavailable"},
    )


@app.exception_handler(DuplicateUnitCode)
async def duplicate_code_handler(request: Request, exc: DuplicateUnitCode):
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "code": exc.code},
    )


@app.exception_handler(CyclicTreeError)
async def cyclic_tree_handler(request: Request, exc: CyclicTreeError):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Administrative tree contains a cycle", "code": exc.code},
    )


# Include API routes
app.include_router(units.router, prefix="/units", tags=["Units"])
app.include_router(provinces.router, prefix="/provinces", tags=["Provinces"])
app.include_router(districts.router, prefix="/districts", tags=["Districts"])
app.include_router(communes.router, prefix="/communes", tags=["Communes"])
app.include_router(tree.router, prefix="/tree", tags=["Administrative Tree"])
app.include_router(convert.router, prefix="/convert", tags=["Address Conversion"])


@app.get("/")
async def read_index():
    return {
        "message": f"{app.title} running",
        "routes": [
            "/units",
            "/provinces",
            "/districts",
            "/communes",
            "/tree",
            "/convert",
        ],
    }
