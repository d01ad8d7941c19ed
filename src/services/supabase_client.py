"""Supabase client wrapper with timeout, retry, and error mapping."""

import asyncio
import os
from typing import Any, Callable, Optional

import httpx
from supabase import create_client, Client
from supabase.client import ClientOptions

from src.utils.errors import KejaHuntError, SupabaseError, UnavailableError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = url or os.environ.get("SUPABASE_URL")
        key = key or os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        # Service-role client; no end-user session to persist or refresh
        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", url=url)

    return _client


def close_supabase_client() -> None:
    """Drop the cached client (supabase-py has no explicit close)."""
    global _client
    if _client:
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager that hands out the client and logs failed operations."""

    def __init__(self, client: Optional[Client] = None, operation: str = "supabase"):
        self.client = client
        self.operation = operation

    async def __aenter__(self) -> Client:
        if self.client is None:
            self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type and not issubclass(exc_type, KejaHuntError):
            logger.error(
                "Supabase operation error",
                operation=self.operation,
                error=str(exc_val),
                type=exc_type.__name__
            )
        return False


class QueryRunner:
    """Executes PostgREST query builders off the event loop with a deadline.

    Reads are retried on ``UnavailableError`` with exponential backoff; writes
    get exactly one attempt.
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        timeout_seconds: float = 10.0,
        read_retries: int = 2,
        retry_delay_seconds: float = 0.2,
    ):
        self._client = client
        self.timeout_seconds = timeout_seconds
        self.read_retries = read_retries
        self.retry_delay_seconds = retry_delay_seconds

    async def run(
        self,
        operation: str,
        build: Callable[[Client], Any],
        *,
        read: bool = True,
    ) -> Any:
        """Build a query against the client and execute it, returning the APIResponse."""
        attempts = 1 + (self.read_retries if read else 0)

        for attempt in range(attempts):
            try:
                return await self._run_once(operation, build)
            except UnavailableError:
                if attempt + 1 >= attempts:
                    raise
                delay = self.retry_delay_seconds * (2 ** attempt)
                logger.warning(
                    "Datastore unavailable, retrying read",
                    operation=operation,
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    retry_delay_seconds=delay
                )
                await asyncio.sleep(delay)

    async def _run_once(self, operation: str, build: Callable[[Client], Any]) -> Any:
        async with SupabaseClient(self._client, operation=operation) as client:
            try:
                with log_timing(operation, logger=logger):
                    query = build(client)
                    return await asyncio.wait_for(
                        asyncio.to_thread(query.execute),
                        timeout=self.timeout_seconds,
                    )
            except KejaHuntError:
                raise
            except asyncio.TimeoutError:
                raise UnavailableError(f"Datastore timed out during {operation}")
            except httpx.TransportError as e:
                raise UnavailableError(f"Datastore unreachable during {operation}: {e}")
            except Exception as e:
                raise SupabaseError(f"Failed to {operation}: {e}")
