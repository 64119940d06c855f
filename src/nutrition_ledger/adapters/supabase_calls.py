"""Shared helpers for executing Supabase queries."""

from typing import Any, Protocol

import httpx
from supabase import PostgrestAPIError

from nutrition_ledger.domain.errors import StorageUnavailableError


class _Executable(Protocol):
    def execute(self) -> Any: ...


def execute(query: _Executable, operation: str) -> Any:
    """Run a query builder, mapping transport and API failures to storage errors."""
    try:
        return query.execute()
    except (httpx.HTTPError, PostgrestAPIError) as exc:
        raise StorageUnavailableError(f"Supabase {operation} failed: {exc}") from exc
