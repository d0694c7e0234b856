import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import uvicorn

from adstudio.config import settings
from adstudio.core.dependencies import get_campaign_orchestrator
from adstudio.routers import brand_kit, campaign, clients, generate, generations

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Build the shared provider clients once, before the first request
    get_campaign_orchestrator()
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(clients.router)
app.include_router(brand_kit.router)
app.include_router(generate.router)
app.include_router(generations.router)
app.include_router(campaign.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy", "service": "adstudio_backend", "env": settings.app_env}


if __name__ == "__main__":
    uvicorn.run(
        "adstudio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        loop="asyncio",  # Explicitly use asyncio instead of auto (which tries uvloop)
    )
