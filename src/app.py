"""Application wiring: builds the services once per process and dispatches requests."""

import time
from typing import Optional

from src.config import AppConfig
from src.services.appointments import AppointmentLifecycle
from src.services.identity import IdentityResolver
from src.services.image_storage import SupabaseImageStorage
from src.services.listings import ListingService
from src.services.notifications import NotificationEmitter, NotificationService, notification_scope
from src.services.store import SupabaseStore
from src.services.supabase_client import QueryRunner, get_supabase_client
from src.services.users import UserService
from src.utils.errors import InternalError, KejaHuntError
from src.utils.logging import correlation_context, get_structured_logger, setup_logging
from src.web.request import Request, Response
from src.web.routes import build_router

logger = get_structured_logger(__name__)

ALLOWED_HEADERS = "Content-Type, Authorization"


class Application:
    """Holds the injected store and storage plus every service built on them."""

    def __init__(self, config: AppConfig, store, image_storage):
        self.config = config
        self.store = store
        self.image_storage = image_storage

        self.identity = IdentityResolver(
            store,
            secret=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            expires_in_seconds=config.jwt_expires_in_seconds,
        )
        self.emitter = NotificationEmitter(store)
        self.listings = ListingService(store, image_storage)
        self.appointments = AppointmentLifecycle(store, self.emitter)
        self.notifications = NotificationService(store)
        self.users = UserService(store)
        self.router = build_router(self)

    def cors_headers(self, request: Request) -> dict[str, str]:
        origin = request.header("Origin")
        if not origin or origin not in self.config.cors_origins:
            return {}
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
            "Vary": "Origin",
        }

    def error_response(self, error: Exception) -> Response:
        if isinstance(error, KejaHuntError) and not isinstance(error, InternalError):
            # Outage details stay in the logs
            message = error.message if error.status_code < 500 else error.default_message
            return Response(error.status_code, {"message": message})

        body = {"message": "Something went wrong!"}
        if self.config.is_development:
            body["error"] = str(error)
        return Response(500, body)

    async def dispatch(self, request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(204, headers={
                "Access-Control-Allow-Methods": ", ".join(self.router.allowed_methods(request.path) or ["GET"]),
                "Access-Control-Allow-Headers": f"{ALLOWED_HEADERS}, {self.config.log_correlation_id_header}",
            })

        route, params = self.router.match(request.method, request.path)
        if route is None:
            return Response(404, {"message": "Route not found"})

        request.path_params = params
        try:
            async with notification_scope():
                body = await route.handler(request)
        except KejaHuntError as e:
            if e.status_code >= 500:
                logger.error("Request failed", error=str(e), type=type(e).__name__)
            return self.error_response(e)
        except Exception as e:
            logger.exception("Unhandled error", error=str(e), type=type(e).__name__)
            return self.error_response(e)

        return Response(route.status, body)

    async def handle(self, request: Request) -> Response:
        """Run one request: correlation id, routing, error envelope, CORS, access log."""
        header_name = self.config.log_correlation_id_header
        with correlation_context(request.header(header_name)) as correlation_id:
            start_time = time.perf_counter()
            response = await self.dispatch(request)

            response.headers.setdefault("Content-Type", "application/json")
            response.headers.update(self.cors_headers(request))
            response.headers[header_name] = correlation_id

            logger.info(
                "Request handled",
                method=request.method,
                path=request.path,
                status=response.status,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2)
            )
            return response


def create_app(
    config: Optional[AppConfig] = None,
    store=None,
    image_storage=None,
) -> Application:
    """Build the application. Store and image storage default to Supabase."""
    config = config or AppConfig.from_env()

    if store is None or image_storage is None:
        client = get_supabase_client(config.supabase_url, config.supabase_key)
        if store is None:
            store = SupabaseStore(QueryRunner(
                client,
                timeout_seconds=config.datastore_timeout_seconds,
                read_retries=config.datastore_read_retries,
                retry_delay_seconds=config.datastore_retry_delay_seconds,
            ))
        if image_storage is None:
            image_storage = SupabaseImageStorage(client, bucket=config.storage_bucket)

    return Application(config, store, image_storage)


_app: Optional[Application] = None


def get_app() -> Application:
    """Process-wide application, created on first use."""
    global _app
    if _app is None:
        config = AppConfig.from_env()
        setup_logging(config)
        _app = create_app(config)
        logger.info("Application initialized", environment=_app.config.environment)
    return _app
