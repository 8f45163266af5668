# reading_admin/main.py
from fastapi import FastAPI
from reading_admin.config import settings
from reading_admin.database import engine, Base
from reading_admin.models import member, reading, story, user  # register tables on Base.metadata
from reading_admin.routers import analytics, ratings, stories, reading as reading_router
from reading_admin.services.cache import InMemoryScoreCache
import logging
from sqlalchemy import exc as sa_exc

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


app = FastAPI(title="Reading Admin - story and member analytics", version="1.0")

# One cache per process, handed to handlers through get_score_cache
app.state.score_cache = InMemoryScoreCache(default_ttl=settings.CACHE_TTL_SECONDS)

# Include Routers
app.include_router(analytics.router)
app.include_router(ratings.router)
app.include_router(stories.router)
app.include_router(reading_router.router)

# Create DB Tables (for local runs; production schema is managed outside this service)
@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "already exists" in msg:
                logging.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise

@app.get("/")
def read_root():
    return {"message": "Welcome to Reading Admin"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("reading_admin.main:app", host="0.0.0.0", port=8000, reload=True)
