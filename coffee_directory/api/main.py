"""
FastAPI main application for the coffee directory.
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from coffee_directory.api.db import init_db, close_db
from coffee_directory.api.routers import coffees, roasters

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting Coffee Directory API...")
    await init_db()
    logger.info("Catalog store initialized")

    yield

    logger.info("Shutting down Coffee Directory API...")
    await close_db()


app = FastAPI(
    title="Coffee Directory API",
    description="Faceted coffee catalog with filtering, search and pagination",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware - allow all origins for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": "0.1.0"
    }


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Coffee Directory API",
        "docs": "/docs",
        "health": "/health",
        "coffees": "/api/coffees",
        "roasters": "/api/roasters"
    }


app.include_router(coffees.router, prefix="/api", tags=["coffees"])
app.include_router(roasters.router, prefix="/api", tags=["roasters"])
