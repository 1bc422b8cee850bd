import logging

from fastapi import FastAPI

from bitbucket_webhooks.api.webhook_routes import router as webhook_router
from bitbucket_webhooks.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=settings.PROJECT_NAME)

app.include_router(webhook_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
