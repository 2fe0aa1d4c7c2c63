import logging
from typing import Dict, List, Optional

import httpx
from supabase import AsyncClient, PostgrestAPIError, acreate_client

from gradeflow.core.config import settings
from gradeflow.core.errors import PersistenceError, PersistenceFailure, RecordNotFoundError
from gradeflow.db.store import RecordStore

logger = logging.getLogger(__name__)

# Postgres error classes that mean the row was rejected, not that the call failed
CONSTRAINT_CODE_PREFIXES = ("22", "23")
NOT_FOUND_CODE = "PGRST116"


async def create_supabase_client() -> AsyncClient:
    """
    Create and validate Supabase client connection.

    Returns:
        AsyncClient: Configured Supabase client

    Raises:
        RuntimeError: If connection validation fails
    """
    try:
        # Use service role key for database operations to bypass RLS issues
        key = settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_ANON_KEY
        client = await acreate_client(settings.SUPABASE_URL, key)

        # Validate connection by attempting a simple query
        await client.table("classes").select("id").limit(1).execute()
        logger.info("Supabase connection validated successfully")

        return client

    except Exception as e:
        error_msg = f"Failed to connect to Supabase: {str(e)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg) from e


def _translate(table: str, error: Exception) -> PersistenceError:
    if isinstance(error, PostgrestAPIError):
        code = error.code or ""
        message = error.message or "Database request failed"
        if code == NOT_FOUND_CODE:
            return PersistenceError(message, table, PersistenceFailure.NOT_FOUND, code)
        if code.startswith(CONSTRAINT_CODE_PREFIXES):
            return PersistenceError(message, table, PersistenceFailure.CONSTRAINT, code)
        return PersistenceError(message, table, PersistenceFailure.NETWORK, code)
    return PersistenceError(f"Could not reach the database: {error}", table, PersistenceFailure.NETWORK)


class SupabaseRecordStore(RecordStore):
    """RecordStore over a Supabase (PostgREST) project."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def fetch(self, table: str, record_id: str) -> dict:
        try:
            result = await self.client.table(table).select("*").eq("id", record_id).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise _translate(table, e) from e
        if not result.data:
            raise RecordNotFoundError(table, record_id)
        return result.data[0]

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, object]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[dict]:
        query = self.client.table(table).select("*")
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        try:
            result = await query.execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise _translate(table, e) from e
        return list(result.data or [])

    async def update(self, table: str, record_id: str, values: dict) -> dict:
        try:
            result = await self.client.table(table).update(values).eq("id", record_id).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise _translate(table, e) from e
        # an update that matched nothing returns no rows
        if not result.data:
            raise RecordNotFoundError(table, record_id)
        return result.data[0]

    async def insert(self, table: str, values: dict) -> dict:
        try:
            result = await self.client.table(table).insert(values).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise _translate(table, e) from e
        if not result.data:
            raise PersistenceError("Insert returned no row", table, PersistenceFailure.MALFORMED)
        return result.data[0]
