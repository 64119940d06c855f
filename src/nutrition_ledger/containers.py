"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client
from supabase.client import ClientOptions

from nutrition_ledger.adapters.supabase_goals_repository import (
    SupabaseGoalsRepository,
)
from nutrition_ledger.adapters.supabase_ledger_store import SupabaseLedgerStore
from nutrition_ledger.config import Settings
from nutrition_ledger.services.goals import GoalsService
from nutrition_ledger.services.ledger import LedgerService
from nutrition_ledger.services.rollup import RollupService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    ledger_service: LedgerService
    goals_service: GoalsService
    rollup_service: RollupService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_service_key,
        options=ClientOptions(
            postgrest_client_timeout=resolved_settings.storage_timeout_seconds
        ),
    )
    ledger_store = SupabaseLedgerStore(supabase_client)
    goals_service = GoalsService(SupabaseGoalsRepository(supabase_client))
    return AppContainer(
        settings=resolved_settings,
        ledger_service=LedgerService(ledger_store),
        goals_service=goals_service,
        rollup_service=RollupService(
            records=ledger_store,
            goals_service=goals_service,
            max_range_days=resolved_settings.max_range_days,
        ),
    )
