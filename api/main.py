from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from anime import router as anime_router
from core import db
from core.settings import load_settings
from ingestion import router as ingestion_router

settings = load_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One DB pool per process, handed to repositories through app.state.
    app.state.settings = settings
    app.state.db_pool = await db.create_pool()
    try:
        yield
    finally:
        await db.close_pool(app.state.db_pool)
        app.state.db_pool = None


app = FastAPI(lifespan=lifespan)

# Allow the local frontend dev server to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(anime_router.router, tags=["anime"])
app.include_router(ingestion_router.router, tags=["ingestion"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "anime catalog api"}
