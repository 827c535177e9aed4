"""Identity API HTTP client for resolving the caller behind an access token"""

import httpx
from typing import Optional
from layaway_gateway.domain.models import Actor, Role
from layaway_gateway.domain.exceptions import AuthenticationError, IdentityServiceError
from layaway_gateway.config import settings
from layaway_gateway.infrastructure.observability.metrics import identity_failures_counter


class IdentityClient:
    """Client for the hosted auth service's user endpoint"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.identity_api_base
        self.api_key = api_key if api_key is not None else settings.identity_api_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def current_user(self, access_token: str) -> Actor:
        """
        Resolve the user owning an access token.

        The role comes from user_metadata.role and defaults to employee.

        Raises:
            AuthenticationError: Token rejected (401/403)
            IdentityServiceError: On timeout, other HTTP errors, or invalid response
        """
        headers = {"Authorization": f"Bearer {access_token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
                if response.status_code in (401, 403):
                    raise AuthenticationError("Access token rejected by identity service")
                response.raise_for_status()
                data = response.json()

                metadata = data.get("user_metadata") or {}
                role = metadata.get("role")
                # Unknown roles get the least privileged one
                if role not in {r.value for r in Role}:
                    role = Role.EMPLOYEE.value
                return Actor(id=str(data["id"]), role=Role(role))

            except httpx.TimeoutException as e:
                identity_failures_counter.inc()
                raise IdentityServiceError(f"Identity API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                identity_failures_counter.inc()
                raise IdentityServiceError(f"Identity API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                identity_failures_counter.inc()
                raise IdentityServiceError(f"Identity API unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                identity_failures_counter.inc()
                raise IdentityServiceError(f"Invalid user data from identity API: {e}") from e
