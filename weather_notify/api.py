"""
REST API module for Weather Notify.

Provides endpoints for:
- Current weather lookup by city
- Subscribing, confirming and unsubscribing from weather emails
- Service health, including the update scheduler
"""

import logging
import os
from typing import Optional
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import Settings, get_settings
from .database import SubscriptionStore
from .errors import StoreError, ValidationError, WeatherNotifyError
from .notifier import EmailNotifier
from .scheduler import UpdateScheduler
from .subscriptions import SubscriptionManager
from .weather import WeatherClient

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# =============================================================================
# Pydantic Models
# =============================================================================

class SubscribeRequest(BaseModel):
    email: str
    city: str
    frequency: str


class MessageResponse(BaseModel):
    message: str


class WeatherResponse(BaseModel):
    temperature: float
    humidity: int
    description: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    database: str
    scheduler: dict


# =============================================================================
# Dependencies
# =============================================================================

def get_manager(request: Request) -> SubscriptionManager:
    return request.app.state.manager


def get_weather(request: Request) -> WeatherClient:
    return request.app.state.weather


# =============================================================================
# API Endpoints
# =============================================================================

router = APIRouter(prefix="/api")


@router.get("/weather", response_model=WeatherResponse, tags=["Weather"])
def get_weather_for_city(
    city: Optional[str] = Query(default=None, description="City name"),
    weather: WeatherClient = Depends(get_weather)
):
    """Get current weather for a city."""
    if city is None or not city.strip():
        raise ValidationError("city parameter is required")

    data = weather.get_current_weather(city.strip())
    return WeatherResponse(**data.to_dict())


@router.post("/subscribe", response_model=MessageResponse, status_code=201, tags=["Subscriptions"])
def subscribe(body: SubscribeRequest, manager: SubscriptionManager = Depends(get_manager)):
    """Subscribe an email to weather updates for a city."""
    manager.subscribe(body.email, body.city, body.frequency)
    return MessageResponse(message="Subscription successful. Confirmation email sent.")


@router.get("/confirm/", response_model=MessageResponse, tags=["Subscriptions"], include_in_schema=False)
@router.get("/unsubscribe/", response_model=MessageResponse, tags=["Subscriptions"], include_in_schema=False)
def missing_token():
    raise ValidationError("Token is required")


@router.get("/confirm/{token}", response_model=MessageResponse, tags=["Subscriptions"])
def confirm(token: str, manager: SubscriptionManager = Depends(get_manager)):
    """Confirm a pending subscription."""
    manager.confirm(token)
    return MessageResponse(message="Subscription confirmed successfully")


@router.get("/unsubscribe/{token}", response_model=MessageResponse, tags=["Subscriptions"])
def unsubscribe(token: str, manager: SubscriptionManager = Depends(get_manager)):
    """Remove a subscription."""
    manager.unsubscribe(token)
    return MessageResponse(message="Unsubscribed successfully")


def root():
    """API information."""
    return {
        "name": "Weather Notify API",
        "version": VERSION,
        "description": "Current weather and scheduled weather emails"
    }


def health_check(request: Request):
    """Health check endpoint."""
    store: SubscriptionStore = request.app.state.store
    scheduler: Optional[UpdateScheduler] = request.app.state.scheduler

    try:
        store.count()
        database = "connected"
    except StoreError as e:
        logger.error(f"Health check database error: {e}")
        database = "error"

    scheduler_status = scheduler.get_status() if scheduler else {"is_running": False, "jobs": {}}
    healthy = database == "connected" and (scheduler is None or scheduler.is_running)

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.utcnow().isoformat(),
        database=database,
        scheduler=scheduler_status
    )


# =============================================================================
# Error Handlers
# =============================================================================

async def handle_service_error(request: Request, exc: WeatherNotifyError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {field}: {first.get('msg')}" if field else "Invalid request body"
    else:
        message = "Invalid request body"
    return JSONResponse(status_code=400, content={"error": message})


# =============================================================================
# FastAPI Application
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    store=None,
    weather=None,
    notifier=None,
    enable_scheduler: Optional[bool] = None
) -> FastAPI:
    """
    Build the application.

    Collaborators that are not passed in are created from settings when
    the application starts.
    """
    settings = settings or get_settings()
    if enable_scheduler is None:
        enable_scheduler = settings.scheduler_enabled

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Weather Notify...")

        app.state.store = store or SubscriptionStore(settings.database_path)
        app.state.weather = weather or WeatherClient(
            api_key=settings.weather_api_key,
            base_url=settings.weather_api_url,
            timeout=settings.weather_timeout
        )
        app.state.notifier = notifier or EmailNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            website_url=settings.website_url,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout
        )
        app.state.manager = SubscriptionManager(app.state.store, app.state.notifier)
        app.state.scheduler = None

        if enable_scheduler:
            app.state.scheduler = UpdateScheduler(
                store=app.state.store,
                weather=app.state.weather,
                notifier=app.state.notifier,
                hourly_interval=settings.hourly_interval_seconds,
                daily_interval=settings.daily_interval_seconds
            )
            app.state.scheduler.start()

        yield

        logger.info("Shutting down...")
        if app.state.scheduler:
            app.state.scheduler.stop()
        if store is None:
            app.state.store.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Weather Notify API",
        description="Subscribe to periodic weather updates by email",
        version=VERSION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WeatherNotifyError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    app.add_api_route("/", root, methods=["GET"], tags=["Info"])
    app.add_api_route("/health", health_check, methods=["GET"],
                      response_model=HealthResponse, tags=["Health"])
    app.include_router(router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "weather_notify.api:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
