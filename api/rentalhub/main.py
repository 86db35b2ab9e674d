"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rentalhub.api import auth, curfew, notifications, rooms, tenants
from rentalhub.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Rental Hub API", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(rooms.router, prefix="/rooms", tags=["rooms"])
app.include_router(tenants.router, prefix="/tenants", tags=["tenants"])
# Curfew override workflow
app.include_router(curfew.router, prefix="/curfew", tags=["curfew"])
app.include_router(notifications.router,
                   prefix="/notifications", tags=["notifications"])


@app.get("/")
def read_root():
    return {"message": "Rental Hub API"}
