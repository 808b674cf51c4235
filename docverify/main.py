# docverify/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docverify.config import settings
from docverify.routers.verify import router as verify_router

# Logging config (structured, helpful for debugging/test reports)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s | %(message)s"
)
logger = logging.getLogger("docverify")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.APP_NAME} starting up...")
    yield
    logger.info(f"{settings.APP_NAME} shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    description="Identity document authenticity verification API",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# CORS - allow all origins for demo; change in prod
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["health"])
def root():
    return {"ok": True, "app": settings.APP_NAME, "version": settings.APP_VERSION}


# include router
app.include_router(verify_router, prefix="/api", tags=["verify"])
