"""Capability contracts for the remote auth/data service.

Any backend-as-a-service (or the built-in database backend) that satisfies
``AuthBackend`` and ``TableStore`` can host the marketplace's identities and
profiles. Table operations never raise for remote-side failures; they return a
``StoreResult`` whose ``error`` carries a closed ``StoreErrorKind``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Protocol, Sequence

from savanna.core.auth.models import AuthResult, DemoResult, Session

if TYPE_CHECKING:
    from savanna.core.auth.schemas import SignUpFields

SessionCallback = Callable[[str, Optional[Session]], None]
Unsubscribe = Callable[[], None]


class StoreErrorKind(str, Enum):
    NO_ROWS = "no_rows"
    DUPLICATE_KEY = "duplicate_key"
    UNKNOWN_COLUMN = "unknown_column"
    ACCESS_DENIED = "access_denied"
    TABLE_MISSING = "table_missing"
    TIMEOUT = "timeout"
    OTHER = "other"


@dataclass(frozen=True)
class StoreError:
    kind: StoreErrorKind
    message: str = ""
    code: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "StoreError":
        if isinstance(exc, TimeoutError):
            return cls(StoreErrorKind.TIMEOUT, str(exc) or "operation timed out")
        return cls(StoreErrorKind.OTHER, str(exc) or exc.__class__.__name__)


@dataclass(frozen=True)
class StoreResult:
    data: Any = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[StoreErrorKind]:
        return self.error.kind if self.error else None

    @classmethod
    def success(cls, data: Any = None) -> "StoreResult":
        return cls(data=data)

    @classmethod
    def failure(cls, kind: StoreErrorKind, message: str = "", code: Optional[str] = None) -> "StoreResult":
        return cls(error=StoreError(kind, message, code))


class AuthBackend(Protocol):
    def get_current_session(self) -> Optional[Session]: ...

    def subscribe(self, callback: SessionCallback) -> Unsubscribe: ...

    def sign_in_with_password(self, email: str, password: str) -> AuthResult: ...

    def sign_up(self, fields: "SignUpFields") -> AuthResult: ...

    def sign_out(self) -> None: ...

    def demo_login(self, kind: str) -> DemoResult: ...

    def restore_session(self, session: Optional[Session]) -> None:
        """Seed tokens persisted elsewhere (another worker); never notifies."""
        ...


class TableStore(Protocol):
    def select_one(
        self,
        table: str,
        filters: Mapping[str, Any],
        embed: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> StoreResult:
        """Return exactly one row; ``NO_ROWS`` when nothing matches.

        ``embed`` maps a result key to a related table joined through
        ``<key>_id`` (e.g. ``{"organization": "organizations"}``).
        """
        ...

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]], timeout: Optional[float] = None) -> StoreResult:
        """Insert rows; ``data`` is the list of stored rows."""
        ...

    def delete(self, table: str, filters: Mapping[str, Any], timeout: Optional[float] = None) -> StoreResult: ...

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        filters: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> StoreResult:
        """Update matching rows; ``data`` is the number of rows touched."""
        ...


__all__ = [
    "AuthBackend",
    "TableStore",
    "StoreError",
    "StoreErrorKind",
    "StoreResult",
    "SessionCallback",
    "Unsubscribe",
]
