"""
Rescan API

FastAPI backend that classifies photos of recyclable items and credits
points to the scanning location.

Usage:
    uvicorn main:app --reload
"""

# Load environment variables from .env file FIRST
from dotenv import load_dotenv
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rescan.config import Config

# Configure logging from environment
logging.basicConfig(
    level=getattr(logging, Config.log_level(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)
logger.info(f"Starting with LOG_LEVEL={Config.log_level()}, VISION_PROVIDER={Config.vision_provider()}")

from rescan.routes import locations_router, ric_codes_router, scan_router
from rescan.services.orchestrator import build_orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the vision client and ledger once; close the ledger on shutdown."""
    orchestrator = build_orchestrator()
    app.state.orchestrator = orchestrator
    logger.info(f"Service ready (database={orchestrator.ledger.db_path})")
    yield
    orchestrator.ledger.close()


app = FastAPI(
    title="Rescan API",
    description="Scan recyclables and earn points for your location",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scan_router, tags=["scan"])
app.include_router(locations_router, tags=["locations"])
app.include_router(ric_codes_router, tags=["ric-codes"])


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Rescan API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint for container probes."""
    return {"status": "healthy"}
