# cuisineo/app/main.py
from __future__ import annotations

import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cuisineo.app.config import settings
from cuisineo.app.routers.auth import router as auth_router
from cuisineo.app.routers.recipes import router as recipes_router
from cuisineo.app.services.browsers import BrowserRegistry, supabase_context_factory
from cuisineo.app.services.local_recipes import load_seed_file

# stdout logging, same in dev and containers
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Cuisineo API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(recipes_router)


@app.on_event("startup")
async def startup() -> None:
    seed = load_seed_file(settings.SEED_FILE)
    factory = supabase_context_factory(
        str(settings.SUPABASE_URL),
        settings.SUPABASE_ANON_KEY,
        settings.LOCAL_STORE_DIR,
        seed,
        table_name=settings.RECIPES_TABLE,
    )
    app.state.browsers = BrowserRegistry(factory)
    logger.info("Cuisineo started (env=%s, %d seed recipes)", settings.APP_ENV, len(seed))


@app.on_event("shutdown")
async def shutdown() -> None:
    browsers = getattr(app.state, "browsers", None)
    if browsers is not None:
        browsers.close_all()


@app.get("/health")
def health():
    return {"ok": True}
