"""
Hearth REST API

FastAPI application exposing the context service and the bots.

Endpoints:
- /health - Health check (includes a storage ping)
- /context - Read or update a user's context document
- /events/* - Budget checks, attended events, recommendation filters
- /bots/* - Health, finance, events, recipes, weather, products and
  health card bots

Usage:
    uvicorn hearth.servers.api:app --reload

Or via CLI:
    hearth serve
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, UTC
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from hearth import __version__
from hearth.bots import Bots, ChatTurn, GeminiGenerator, TextGenerator, create_bots
from hearth.context.affordability import check_affordability, recommend
from hearth.context.clock import Clock
from hearth.context.service import ContextService
from hearth.context.storage import ContextStorageAdapter, create_storage
from hearth.context.store import ContextStore
from hearth.core.config import Settings, configure_logging, get_settings
from hearth.core.errors import ContextValidationError, HearthError, StoreUnavailable
from hearth.core.models import AttendedEvent, AuthenticatedUser
from hearth.servers.auth import AuthProvider, HeaderAuthProvider

logger = logging.getLogger(__name__)


# =============================================================================
# Request/Response Models
# =============================================================================


class RequestModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str = __version__
    storage: bool = True
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ChatRequest(RequestModel):
    """Chat turn for the health, events and recipes bots."""
    message: str = Field(..., description="The user's message")
    chat_history: list[dict[str, Any]] = Field(default_factory=list, alias="chatHistory")


class FinanceChatRequest(RequestModel):
    """Chat turn for the finance bot."""
    user_message: str | None = Field(None, alias="userMessage")
    chat_history: list[dict[str, Any]] = Field(default_factory=list, alias="chatHistory")


class WeatherRequest(RequestModel):
    """Weather snapshot for the outfit and health card bots."""
    weather_data: dict[str, Any] | None = Field(None, alias="weatherData")
    longitude: float | None = None
    latitude: float | None = None


class ProductsRequest(RequestModel):
    """Room photo and what the user is looking for."""
    prompt: str | None = None
    image_parts: list[dict[str, Any]] | dict[str, Any] | None = Field(None, alias="imageParts")

    def attachments(self) -> list[dict[str, Any]]:
        if self.image_parts is None:
            return []
        return self.image_parts if isinstance(self.image_parts, list) else [self.image_parts]


class BudgetCheckRequest(RequestModel):
    """Affordability check for one event."""
    event_cost: float = Field(..., ge=0, alias="eventCost")


# =============================================================================
# App Factory
# =============================================================================


def create_app(
    settings: Settings | None = None,
    storage: ContextStorageAdapter | None = None,
    generator: TextGenerator | None = None,
    auth: AuthProvider | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """
    Build the API application.

    Collaborators left as None are built from settings when the app starts:
    storage from ``storage_backend``, the generator as a GeminiGenerator and
    auth as a HeaderAuthProvider.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        store = ContextStore(
            storage or create_storage(settings),
            clock=clock,
            default_city=settings.default_city,
        )
        text_generator = generator or GeminiGenerator(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            fallback_model=settings.gemini_fallback_model,
            timeout=settings.generation_timeout_secs,
        )
        await store.connect()
        await text_generator.connect()

        service = ContextService(store)
        app.state.service = service
        app.state.bots = create_bots(service, text_generator, settings)
        app.state.auth = auth or HeaderAuthProvider(settings.api_token)
        app.state.settings = settings
        logger.info(f"Hearth API started (storage={settings.storage_backend.value})")

        yield

        await text_generator.disconnect()
        await store.disconnect()

    app = FastAPI(
        title="Hearth API",
        description="REST API for Hearth - shared context for personal assistant bots",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    _register_routes(app)
    return app


# =============================================================================
# Dependencies
# =============================================================================


def get_service(request: Request) -> ContextService:
    """Get the context service."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Context service not initialized")
    return service


def get_bots(request: Request) -> Bots:
    """Get the bots."""
    bots = getattr(request.app.state, "bots", None)
    if bots is None:
        raise HTTPException(status_code=503, detail="Bots not initialized")
    return bots


def current_user(request: Request) -> AuthenticatedUser:
    """Authenticate the caller before anything touches the store."""
    return request.app.state.auth.authenticate(request.headers)


def _history(items: list[dict[str, Any]]) -> list[ChatTurn]:
    return [ChatTurn.from_client(item) for item in items]


def _require_user_id(user_id: str | None) -> str:
    if not user_id or not user_id.strip():
        raise ContextValidationError("User ID is required")
    return user_id


# =============================================================================
# Error Handlers
# =============================================================================


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HearthError)
    async def hearth_error_handler(request: Request, exc: HearthError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.error}: {exc.details}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "details": str(exc)},
        )


# =============================================================================
# Routes
# =============================================================================


def _register_routes(app: FastAPI) -> None:

    # -------------------------------------------------------------------------
    # System
    # -------------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check(service: ContextService = Depends(get_service)):
        """Health check endpoint."""
        storage_ok = await service.store.health_check()
        logger.debug(f"Health check: storage={storage_ok}")
        return HealthResponse(status="ok" if storage_ok else "degraded", storage=storage_ok)

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Hearth API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    # -------------------------------------------------------------------------
    # Context
    # -------------------------------------------------------------------------

    @app.get("/context", tags=["Context"])
    async def get_context(
        user_id: str | None = Query(None, alias="userId"),
        service: ContextService = Depends(get_service),
    ):
        """Get a user's full context (the default document if none is stored)."""
        user_id = _require_user_id(user_id)
        try:
            return await service.read(user_id)
        except StoreUnavailable as e:
            raise StoreUnavailable(e.details, error="Failed to fetch user context") from e

    @app.post("/context", tags=["Context"])
    async def update_context(
        user_id: str | None = Query(None, alias="userId"),
        update: Any = Body(None),
        service: ContextService = Depends(get_service),
    ):
        """Merge a partial update into a user's context and return the result."""
        user_id = _require_user_id(user_id)
        try:
            return await service.apply_update(user_id, update)
        except StoreUnavailable as e:
            raise StoreUnavailable(e.details, error="Failed to update user context") from e

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    @app.post("/events/check-budget", tags=["Events"])
    async def check_budget(
        request: BudgetCheckRequest,
        user: AuthenticatedUser = Depends(current_user),
        service: ContextService = Depends(get_service),
    ):
        """Can the user afford an event of this cost?"""
        try:
            context = await service.read(user.id)
        except StoreUnavailable as e:
            raise StoreUnavailable(e.details, error="Budget check failed") from e
        return check_affordability(context, request.event_cost, app.state.settings.currency_symbol)

    @app.post("/events/attended", tags=["Events"])
    async def record_attended_event(
        event: AttendedEvent,
        user: AuthenticatedUser = Depends(current_user),
        service: ContextService = Depends(get_service),
    ):
        """Record an attended event and pay for it from the balance."""
        try:
            return await service.record_event(user.id, event)
        except StoreUnavailable as e:
            raise StoreUnavailable(e.details, error="Failed to update events history") from e

    @app.get("/events/recommendations", tags=["Events"])
    async def event_recommendations(
        interests: str | None = Query(None, description="Comma-separated interests"),
        max_price: float | None = Query(None, ge=0, alias="maxPrice"),
        location: str | None = Query(None),
        user: AuthenticatedUser = Depends(current_user),
        service: ContextService = Depends(get_service),
    ):
        """Effective event filters, defaulting to the user's preferences."""
        filters: dict[str, Any] = {"maxPrice": max_price, "location": location}
        if interests is not None:
            filters["interests"] = [i.strip() for i in interests.split(",") if i.strip()]
        context = await service.read_or_default(user.id)
        return recommend(context, filters, app.state.settings.currency_symbol)

    # -------------------------------------------------------------------------
    # Bots
    # -------------------------------------------------------------------------

    @app.post("/bots/health", tags=["Bots"])
    async def health_bot(
        request: ChatRequest,
        user: AuthenticatedUser = Depends(current_user),
        bots: Bots = Depends(get_bots),
    ):
        """Health assistant turn."""
        return await bots.health.chat(user, request.message, _history(request.chat_history))

    @app.post("/bots/finance", tags=["Bots"])
    async def finance_bot(
        request: FinanceChatRequest,
        user: AuthenticatedUser = Depends(current_user),
        bots: Bots = Depends(get_bots),
    ):
        """Finance assistant turn."""
        return await bots.finance.chat(user, request.user_message or "", _history(request.chat_history))

    @app.post("/bots/events", tags=["Bots"])
    async def events_bot(
        request: ChatRequest,
        user: AuthenticatedUser = Depends(current_user),
        bots: Bots = Depends(get_bots),
    ):
        """Events assistant turn."""
        return await bots.events.chat(user, request.message, _history(request.chat_history))

    @app.post("/bots/recipes", tags=["Bots"])
    async def recipes_bot(
        request: ChatRequest,
        user: AuthenticatedUser = Depends(current_user),
        bots: Bots = Depends(get_bots),
    ):
        """Food assistant turn."""
        return await bots.recipes.chat(user, request.message, _history(request.chat_history))

    @app.post("/bots/weather", tags=["Bots"])
    async def weather_bot(
        request: WeatherRequest,
        user: AuthenticatedUser = Depends(current_user),
        bots: Bots = Depends(get_bots),
    ):
        """Outfit suggestions for a weather snapshot."""
        return await bots.weather.recommend(user, request.weather_data, request.longitude, request.latitude)

    @app.post("/bots/products", tags=["Bots"])
    async def products_bot(
        request: ProductsRequest,
        user: AuthenticatedUser = Depends(current_user),
        bots: Bots = Depends(get_bots),
    ):
        """Product suggestions for a room photo."""
        return await bots.products.recommend(user, request.prompt or "", request.attachments())

    @app.post("/bots/health-card", tags=["Bots"])
    async def health_card_bot(
        request: WeatherRequest,
        user: AuthenticatedUser = Depends(current_user),
        bots: Bots = Depends(get_bots),
    ):
        """Health precautions and medicines for a weather snapshot."""
        return await bots.health_card.recommend(user, request.weather_data, request.longitude, request.latitude)


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
