from contextlib import asynccontextmanager
from fastapi import FastAPI

from app.core.config import settings
from app.db.session import create_db_models
from app.api import chapters

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_models()
    yield

app = FastAPI(title=f"{settings.PROJECT_NAME} API", version=settings.VERSION, lifespan=lifespan)

#Include Routers
app.include_router(chapters.router, prefix="/api", tags=["Chapters"])
