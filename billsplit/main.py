import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from billsplit.core.config import settings
from billsplit.db.mongo import connect_to_mongo, disconnect_from_mongo
from billsplit.api.v1.api import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    yield
    await disconnect_from_mongo()

app = FastAPI(
    title=settings.PROJECT_NAME,
    lifespan=lifespan,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"message": "Welcome to Billsplit API"}

app.include_router(api_router, prefix=settings.API_V1_STR)
