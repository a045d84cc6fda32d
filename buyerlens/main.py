from contextlib import asynccontextmanager

from fastapi import FastAPI

from buyerlens.config import settings
from buyerlens.db.session import init_db
from buyerlens.logging_setup import setup_logging
from buyerlens.routers.import_router import router as import_router
from buyerlens.routers.reports_router import router as reports_router

setup_logging(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="BuyerLens API", lifespan=lifespan)

@app.get("/")
def root():
    return {"ok": True, "service": "buyerlens", "module": "analytics"}

app.include_router(import_router, prefix="/import", tags=["import"])
app.include_router(reports_router, prefix="/api", tags=["reports"])
