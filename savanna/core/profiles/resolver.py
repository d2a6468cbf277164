"""Profile resolution with graceful degradation.

The remote store's schema and access-control policy differ between
deployments, so creating a missing profile walks a ladder of progressively
simpler shapes and always ends in a usable profile. ``resolve`` never raises.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from savanna.core.auth.backend import StoreErrorKind, StoreResult, TableStore
from savanna.core.profiles.ladder import Attempt, run_ladder
from savanna.core.profiles.models import Profile, ProfileCompleteness
from savanna.core.profiles.shapes import (
    full_shape,
    identifier_shape,
    minimal_shape,
    synthetic_profile,
)
from savanna.core.utils.redaction import actor_reference

logger = logging.getLogger(__name__)

DEFAULT_WRITE_TIMEOUT_SECONDS = 10.0
PROBE_ID_PREFIX = "probe-"


@dataclass(frozen=True)
class ResolverSettings:
    profile_table: str = "user_profiles"
    organization_table: str = "organizations"
    write_timeout: float = DEFAULT_WRITE_TIMEOUT_SECONDS
    permission_probe: bool = True

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ResolverSettings":
        return cls(
            profile_table=config.get("PROFILE_TABLE", "user_profiles"),
            organization_table=config.get("ORGANIZATION_TABLE", "organizations"),
            write_timeout=float(config.get("PROFILE_WRITE_TIMEOUT_SECONDS", DEFAULT_WRITE_TIMEOUT_SECONDS)),
            permission_probe=bool(config.get("PROFILE_PERMISSION_PROBE", True)),
        )


class ProfileResolver:
    def __init__(self, store: TableStore, settings: Optional[ResolverSettings] = None):
        self.store = store
        self.settings = settings or ResolverSettings()

    def resolve(
        self,
        actor_id: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Profile:
        """Return the stored profile, a freshly created one, or a synthetic stand-in."""
        ref = actor_reference(actor_id)
        try:
            result = self.store.select_one(
                self.settings.profile_table,
                {"id": actor_id},
                embed={"organization": self.settings.organization_table},
            )
        except Exception:
            logger.warning("Profile read raised for actor %s; using synthetic profile", ref, exc_info=True)
            return synthetic_profile(actor_id, email=email, phone=phone, metadata=metadata)

        if result.ok and isinstance(result.data, dict):
            return Profile(id=actor_id, data=dict(result.data), completeness=ProfileCompleteness.STORED)

        if result.error_kind == StoreErrorKind.NO_ROWS:
            logger.info("Profile not found for actor %s; creating one", ref)
            try:
                return self._create(actor_id, email=email, phone=phone, metadata=metadata)
            except Exception:
                logger.warning("Profile creation raised for actor %s; using synthetic profile", ref, exc_info=True)
                return synthetic_profile(actor_id, email=email, phone=phone, metadata=metadata)

        logger.warning(
            "Profile read failed for actor %s (%s); using synthetic profile",
            ref,
            result.error_kind.value if result.error_kind else "malformed row",
        )
        return synthetic_profile(actor_id, email=email, phone=phone, metadata=metadata)

    def record_login(self, actor_id: str) -> bool:
        """Set ``last_login_date`` on the stored profile; failures are logged only."""
        result = self.store.update(
            self.settings.profile_table,
            {"last_login_date": datetime.now(timezone.utc).isoformat()},
            {"id": actor_id},
            timeout=self.settings.write_timeout,
        )
        if not result.ok:
            logger.info(
                "Last login not recorded for actor %s (%s)", actor_reference(actor_id), result.error_kind.value
            )
        return result.ok

    # --- creation ladder ---

    def _create(
        self,
        actor_id: str,
        email: Optional[str],
        phone: Optional[str],
        metadata: Optional[Mapping[str, Any]],
    ) -> Profile:
        if self.settings.permission_probe and not self._writes_permitted():
            logger.info("Profile table refuses writes; using synthetic profile")
            return synthetic_profile(actor_id, email=email, phone=phone, metadata=metadata)

        attempts = [
            Attempt("full", full_shape(actor_id, email=email, phone=phone, metadata=metadata), ProfileCompleteness.FULL),
            Attempt("minimal", minimal_shape(actor_id, email=email), ProfileCompleteness.MINIMAL),
            Attempt("identifier", identifier_shape(actor_id), ProfileCompleteness.IDENTIFIER),
        ]
        outcome = run_ladder(attempts, self._insert_attempt)
        if outcome.data is None or outcome.accepted is None:
            return synthetic_profile(actor_id, email=email, phone=phone, metadata=metadata)

        data = outcome.data
        data.setdefault("id", actor_id)
        return Profile(id=actor_id, data=data, completeness=outcome.accepted.completeness)

    def _insert_attempt(self, attempt: Attempt) -> StoreResult:
        return self.store.insert(
            self.settings.profile_table,
            [attempt.payload],
            timeout=self.settings.write_timeout,
        )

    def _writes_permitted(self) -> bool:
        """Insert and remove a disposable row; False only on an explicit access denial."""
        probe_id = f"{PROBE_ID_PREFIX}{uuid.uuid4().hex}"
        table = self.settings.profile_table
        try:
            result = self.store.insert(table, [{"id": probe_id}], timeout=self.settings.write_timeout)
        except Exception:
            logger.info("Write permission probe raised; continuing with profile creation", exc_info=True)
            return True

        if result.error_kind == StoreErrorKind.ACCESS_DENIED:
            return False
        if not result.ok:
            logger.info("Write permission probe inconclusive (%s)", result.error_kind.value)
            return True

        try:
            cleanup = self.store.delete(table, {"id": probe_id}, timeout=self.settings.write_timeout)
            if not cleanup.ok:
                logger.warning("Could not remove probe row (%s)", cleanup.error_kind.value)
        except Exception:
            logger.warning("Probe row cleanup raised", exc_info=True)
        return True


__all__ = ["ProfileResolver", "ResolverSettings", "PROBE_ID_PREFIX"]
