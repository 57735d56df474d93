from logging_config import setup_logging

# Initialize logging BEFORE anything else
setup_logging()

from contextlib import asynccontextmanager
from logging_config import get_logger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from middleware import RequestLifecycleMiddleware
from routes import notifications
from automations.scheduler import init_notification_scheduler, shutdown_notification_scheduler
from config import config

logger = get_logger("app")


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Background cron-style jobs live as long as the app
    init_notification_scheduler(config.NOTIFICATIONS_SCHEDULER_ENABLED)
    yield
    await shutdown_notification_scheduler()


app = FastAPI(title="Todu API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CLIENT_URL] if config.ENV == "production" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request lifecycle middleware (request ID, context vars, duration logging)
app.add_middleware(RequestLifecycleMiddleware)

app.include_router(notifications.router)

logger.info("All routers registered, Todu API ready")

@app.get("/")
async def root():
    return {"status": "online", "message": "Todu API is running"}
