from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from database import Base, engine, get_settings
from api import auction, roster, results
from api.deps import get_engine
from core.turn_timer import TurnTimer

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: 建立資料庫表，並在這個 worker 啟動回合計時器
    Base.metadata.create_all(bind=engine)
    timer = None
    if settings.timer_enabled:
        timer = TurnTimer(get_engine())
        timer.start()
    yield
    # Shutdown: 停止計時器
    if timer is not None:
        await timer.stop()


app = FastAPI(
    title="Class Auction API",
    description="Backend API for assigning students to teams through a live turn-based auction",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auction.router)
app.include_router(roster.router)
app.include_router(results.router)


@app.get("/")
def root():
    return {"message": "Class Auction API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
