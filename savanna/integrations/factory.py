"""Build the remote auth/data service selected by ``AUTH_BACKEND``."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

from savanna.core.auth.backend import AuthBackend, TableStore
from savanna.integrations.database.backend import LocalAuthBackend
from savanna.integrations.database.store import SqlTableStore
from savanna.integrations.supabase import SupabaseClient, SupabaseError

logger = logging.getLogger(__name__)

BACKEND_SUPABASE = "supabase"
BACKEND_DATABASE = "database"


def build_backend(config: Mapping[str, Any]) -> Tuple[Optional[AuthBackend], TableStore]:
    """Return a fresh (auth backend, table store) pair for one client.

    A misconfigured Supabase backend yields ``None`` for the auth side so the
    provider starts signed out with ``initialization_failed`` set.
    """
    kind = (config.get("AUTH_BACKEND") or BACKEND_DATABASE).lower()
    if kind == BACKEND_SUPABASE:
        try:
            client = SupabaseClient.from_config(config)
        except SupabaseError:
            logger.error("Supabase backend selected but SUPABASE_URL/SUPABASE_ANON_KEY are not set")
            return None, SqlTableStore()
        return client, client

    if kind != BACKEND_DATABASE:
        raise ValueError(f"Unknown AUTH_BACKEND: {kind}")
    return LocalAuthBackend(demo_enabled=bool(config.get("DEMO_LOGIN_ENABLED", True))), SqlTableStore()


__all__ = ["build_backend", "BACKEND_SUPABASE", "BACKEND_DATABASE"]
