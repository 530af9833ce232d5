"""Profile repair through the BaaS admin and table APIs.

Every auth user should own a ``user_profiles`` row. Users created while the
profile trigger was broken have none, and the shop API then rejects them.
This module finds those users and inserts the missing rows directly,
bypassing the REST API, with the service key.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx

from .errors import ApiClientError, ShopcheckError
from .shared.logging import get_logger

logger = get_logger(__name__)

PROFILES_TABLE = "user_profiles"

# Used when the user's metadata does not carry the field
PROFILE_DEFAULTS = {
    "nom": "Utilisateur",
    "prenom": "Anonyme",
    "age": 18,
    "role": "user",
}


@dataclass
class BaasError(ShopcheckError):
    """The BaaS answered with an error."""

    status_code: int | None = None


@dataclass
class AuthUser:
    id: str
    email: str | None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuthUser":
        return cls(
            id=data["id"],
            email=data.get("email"),
            metadata=data.get("user_metadata") or {},
        )


def profile_for(user: AuthUser) -> dict[str, Any]:
    """Build the profile row for a user, filling gaps with the defaults."""
    row: dict[str, Any] = {"id": user.id}
    for key, default in PROFILE_DEFAULTS.items():
        row[key] = user.metadata.get(key) or default
    return row


@dataclass
class ProfileFailure:
    user: AuthUser
    error: str


@dataclass
class RepairReport:
    """Outcome of a profile repair run."""

    users: int = 0
    profiles_before: int = 0
    missing: list[AuthUser] = field(default_factory=list)
    created: list[dict[str, Any]] = field(default_factory=list)
    failures: list[ProfileFailure] = field(default_factory=list)
    profiles_after: int | None = None
    dry_run: bool = False

    @property
    def complete(self) -> bool:
        """True when every user now has a profile."""
        if self.dry_run:
            return not self.missing
        return self.profiles_after is not None and self.profiles_after >= self.users

    def to_dict(self) -> dict[str, Any]:
        return {
            "users": self.users,
            "profiles_before": self.profiles_before,
            "missing": [{"id": u.id, "email": u.email} for u in self.missing],
            "created": len(self.created),
            "failed": [
                {"id": f.user.id, "email": f.user.email, "error": f.error} for f in self.failures
            ],
            "profiles_after": self.profiles_after,
            "dry_run": self.dry_run,
            "complete": self.complete,
        }


@dataclass
class UserCheck:
    """One user's auth record and profile row."""

    user: AuthUser
    profile: dict[str, Any] | None
    created: bool = False


class BaasAdminClient:
    """Service-key client for the BaaS auth admin and REST table APIs."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._service_key = service_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaasAdminClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "apikey": self._service_key,
                "Authorization": f"Bearer {self._service_key}",
            },
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        if not self._client:
            raise ApiClientError("Client not initialized. Use 'async with' context.")
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=headers
            )
            response.raise_for_status()
            return response.json() if response.content else None
        except httpx.ConnectError:
            raise ApiClientError(
                f"Cannot connect to BaaS at {self.base_url}",
                hint="Check baas_url with: shopcheck config show",
            )
        except httpx.TimeoutException:
            raise ApiClientError(f"Request timed out after {self.timeout}s")
        except httpx.TransportError as e:
            raise ApiClientError(f"Transport error: {e}")
        except httpx.HTTPStatusError as e:
            raise BaasError(_error_message(e.response), status_code=e.response.status_code)

    async def list_users(self, per_page: int = 1000) -> list[AuthUser]:
        """List all auth users, following pages until one comes back short."""
        users: list[AuthUser] = []
        page = 1
        while True:
            data = await self._request(
                "GET", "/auth/v1/admin/users", params={"page": page, "per_page": per_page}
            )
            batch = data.get("users", []) if isinstance(data, dict) else data or []
            users.extend(AuthUser.from_dict(u) for u in batch)
            if len(batch) < per_page:
                return users
            page += 1

    async def get_user(self, user_id: str) -> AuthUser:
        data = await self._request("GET", f"/auth/v1/admin/users/{user_id}")
        return AuthUser.from_dict(data.get("user", data))

    async def list_profiles(self) -> list[dict[str, Any]]:
        return await self._request("GET", f"/rest/v1/{PROFILES_TABLE}", params={"select": "*"})

    async def get_profile(self, user_id: str) -> dict[str, Any] | None:
        rows = await self._request(
            "GET",
            f"/rest/v1/{PROFILES_TABLE}",
            params={"select": "*", "id": f"eq.{user_id}"},
        )
        return rows[0] if rows else None

    async def insert_profile(self, row: dict[str, Any]) -> dict[str, Any]:
        data = await self._request(
            "POST",
            f"/rest/v1/{PROFILES_TABLE}",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        if isinstance(data, list):
            return data[0] if data else row
        return data or row


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    if isinstance(data, dict):
        for key in ("message", "msg", "error_description", "error"):
            if isinstance(data.get(key), str):
                return f"HTTP {response.status_code}: {data[key]}"
    return f"HTTP {response.status_code}"


def find_missing(users: list[AuthUser], profiles: list[dict[str, Any]]) -> list[AuthUser]:
    """Users whose id has no row in the profiles table."""
    existing = {p.get("id") for p in profiles}
    return [u for u in users if u.id not in existing]


async def repair_profiles(client: BaasAdminClient, dry_run: bool = False) -> RepairReport:
    """Create a profile row for every auth user that lacks one.

    A failed insert is recorded and the remaining users are still processed.

    Args:
        client: Entered BaasAdminClient
        dry_run: Only report the missing profiles

    Returns:
        RepairReport
    """
    users = await client.list_users()
    profiles = await client.list_profiles()
    report = RepairReport(
        users=len(users),
        profiles_before=len(profiles),
        missing=find_missing(users, profiles),
        dry_run=dry_run,
    )
    logger.info("profiles_scanned", users=report.users, missing=len(report.missing))

    if dry_run or not report.missing:
        report.profiles_after = report.profiles_before
        return report

    for user in report.missing:
        try:
            report.created.append(await client.insert_profile(profile_for(user)))
            logger.info("profile_created", user_id=user.id)
        except BaasError as e:
            report.failures.append(ProfileFailure(user=user, error=e.message))
            logger.warning("profile_create_failed", user_id=user.id, error=e.message)

    report.profiles_after = len(await client.list_profiles())
    return report


async def check_user(client: BaasAdminClient, user_id: str, fix: bool = True) -> UserCheck:
    """Fetch a user and their profile, creating the profile when missing and ``fix``."""
    user = await client.get_user(user_id)
    profile = await client.get_profile(user_id)
    if profile is None and fix:
        profile = await client.insert_profile(profile_for(user))
        logger.info("profile_created", user_id=user_id)
        return UserCheck(user=user, profile=profile, created=True)
    return UserCheck(user=user, profile=profile)
