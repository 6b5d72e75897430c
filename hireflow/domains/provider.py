"""
Domain-routing provider clients.

The provider attaches a custom domain to the running application and
confirms that its DNS points at the edge. Vercel is the production provider.
"""

import asyncio
import logging
from typing import Dict, Optional, Tuple

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import ProviderError

logger = logging.getLogger("hireflow.domains.provider")

# Provider error codes meaning the domain is already on this project
_ALREADY_ATTACHED_CODES = {"domain_already_exists", "domain_already_in_project"}
# Provider error codes meaning DNS is not configured yet
_NOT_VERIFIED_CODES = {"missing_txt_record", "domain_not_verified"}


class TransientProviderError(ProviderError):
    """Connection failure, timeout, rate limit or 5xx answer."""
    pass


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, TransientProviderError)


class VercelDomainProvider:
    """Vercel REST API client for project domains."""

    def __init__(
        self,
        api_token: str = "",
        project_id: str = "",
        team_id: str = "",
        api_base: str = "https://api.vercel.com",
        timeout: float = 15.0,
        max_attempts: int = 3,
        backoff_min: float = 0.5,
        backoff_max: float = 4.0,
    ):
        self.api_token = api_token
        self.project_id = project_id
        self.team_id = team_id
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_token and self.project_id)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

    def _params(self) -> Dict[str, str]:
        return {"teamId": self.team_id} if self.team_id else {}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def _send(
        self, method: str, path: str, json: Optional[dict] = None
    ) -> Tuple[int, dict]:
        """One HTTP exchange with the provider. Returns (status, body)."""
        if not self.configured:
            raise ProviderError("Vercel API is not configured")

        session = await self._get_session()
        try:
            async with session.request(
                method,
                f"{self.api_base}{path}",
                headers=self._headers(),
                params=self._params(),
                json=json,
            ) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = {}
                return resp.status, body if isinstance(body, dict) else {}
        except asyncio.TimeoutError as e:
            raise TransientProviderError(
                f"Vercel {method} {path} timed out after {self.timeout}s"
            ) from e
        except aiohttp.ClientError as e:
            raise TransientProviderError(f"Vercel {method} {path} failed: {e}") from e

    async def _call(
        self, method: str, path: str, json: Optional[dict] = None
    ) -> Tuple[int, dict]:
        """
        Send with bounded retry on transient failures.

        Rate limits and 5xx answers are retried; any other status is returned
        to the caller to interpret.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.backoff_min,
                min=self.backoff_min,
                max=self.backoff_max,
            ),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        ):
            with attempt:
                status, body = await self._send(method, path, json)
                if status == 429 or status >= 500:
                    raise TransientProviderError(
                        _error_message(body, f"Vercel answered {status}"),
                        status_code=status,
                    )
                return status, body

    def _project_path(self, suffix: str = "") -> str:
        return f"/v10/projects/{self.project_id}/domains{suffix}"

    async def add_domain(self, domain: str) -> dict:
        """Attach domain to the project. Already attached counts as success."""
        status, body = await self._call(
            "POST", self._project_path(), json={"name": domain}
        )
        if 200 <= status < 300:
            logger.info(f"Attached {domain} to Vercel project")
            return body

        code = _error_code(body)
        if status == 409 and code in _ALREADY_ATTACHED_CODES:
            logger.info(f"{domain} already attached to Vercel project")
            return body

        raise ProviderError(
            _error_message(body, "Failed to add domain to Vercel"),
            status_code=status,
        )

    async def verify_domain(self, domain: str) -> dict:
        """Ask the provider to re-check DNS. Body carries ``verified``."""
        status, body = await self._call(
            "POST", self._project_path(f"/{domain}/verify")
        )
        if 200 <= status < 300:
            return body

        code = _error_code(body)
        if status == 400 and code in _NOT_VERIFIED_CODES:
            return {
                "name": domain,
                "verified": False,
                "message": _error_message(body, "Domain is not verified yet"),
            }

        raise ProviderError(
            _error_message(body, "Failed to verify domain on Vercel"),
            status_code=status,
        )

    async def remove_domain(self, domain: str) -> None:
        """Detach domain from the project. Unknown to the provider is success."""
        status, body = await self._call("DELETE", self._project_path(f"/{domain}"))
        if 200 <= status < 300:
            logger.info(f"Detached {domain} from Vercel project")
            return
        if status == 404:
            logger.info(f"{domain} was not attached to Vercel project")
            return

        raise ProviderError(
            _error_message(body, "Failed to remove domain from Vercel"),
            status_code=status,
        )

    async def get_domain_config(self, domain: str) -> dict:
        """Provider's view of the domain's DNS configuration."""
        status, body = await self._call("GET", f"/v6/domains/{domain}/config")
        if 200 <= status < 300:
            return body

        raise ProviderError(
            _error_message(body, "Failed to get domain config"),
            status_code=status,
        )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None


def _error_code(body: dict) -> Optional[str]:
    error = body.get("error")
    return error.get("code") if isinstance(error, dict) else None


def _error_message(body: dict, default: str) -> str:
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return default


class InMemoryDomainProvider:
    """
    Provider stand-in for development: keeps attached domains in memory.

    Domains listed in ``dns_configured`` verify successfully.
    """

    def __init__(self):
        self.attached: Dict[str, dict] = {}
        self.dns_configured: set = set()

    async def add_domain(self, domain: str) -> dict:
        entry = self.attached.setdefault(domain, {"name": domain, "verified": False})
        return dict(entry)

    async def verify_domain(self, domain: str) -> dict:
        if domain not in self.attached:
            raise ProviderError(f"{domain} is not attached", status_code=404)
        verified = domain in self.dns_configured
        self.attached[domain]["verified"] = verified
        return {"name": domain, "verified": verified}

    async def remove_domain(self, domain: str) -> None:
        self.attached.pop(domain, None)

    async def get_domain_config(self, domain: str) -> dict:
        return {"misconfigured": domain not in self.dns_configured}

    async def close(self) -> None:
        pass
