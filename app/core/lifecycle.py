from fastapi import FastAPI
from app.core.config import settings
from app.core.logger import logger

#This is for logging the startup and shutdown tasks
def setup_startup_tasks(app: FastAPI):
    @app.on_event("startup")
    async def startup_event():
        if not settings.TESTING:
            from app.storage.db import init_db
            await init_db()
        logger.info(f"Application startup complete, serving *.{settings.PARENT_DOMAIN}")

    @app.on_event("shutdown")
    async def shutdown_event():
        from app.api.deps import close_dns_provider
        await close_dns_provider()
        logger.info("Application shutdown complete.")
