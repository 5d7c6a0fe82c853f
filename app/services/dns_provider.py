"""
Cloudflare DNS management API client.

Only the three record operations the provisioning flow needs are exposed.
Failures are split into ProviderError (the provider refused the request,
retrying will not help) and ProviderUnavailable (timeouts, transport
errors, 429 and 5xx responses; the caller may retry).
"""

import logging
from typing import Optional, Protocol

import httpx

from app.core.config import Settings
from app.core.errors import ErrorCode, ProviderError, ProviderUnavailable

logger = logging.getLogger(__name__)


class DNSProvider(Protocol):
    async def create_record(self, fqdn: str, record_type: str, value: str, proxied: bool) -> str:
        ...

    async def update_record(self, provider_record_id: str, value: str, proxied: bool) -> None:
        ...

    async def delete_record(self, provider_record_id: str) -> None:
        ...


class CloudflareClient:
    """Talks to one Cloudflare zone with a scoped API token."""

    def __init__(
        self,
        api_token: str,
        zone_id: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.zone_id = zone_id
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_token.strip()}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(timeout, connect=min(timeout, 3.0)),
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, s: Settings) -> "CloudflareClient":
        return cls(
            api_token=s.CF_API_TOKEN,
            zone_id=s.CF_ZONE_ID,
            base_url=s.CF_API_BASE_URL,
            timeout=s.PROVIDER_TIMEOUT_SECONDS,
        )

    async def aclose(self):
        await self._client.aclose()

    def _records_path(self, provider_record_id: str = None) -> str:
        path = f"/zones/{self.zone_id}/dns_records"
        return f"{path}/{provider_record_id}" if provider_record_id else path

    async def _request(self, method: str, path: str, json: dict = None) -> httpx.Response:
        try:
            return await self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            logger.error(f"DNS provider timed out on {method} {path}")
            raise ProviderUnavailable(f"{ErrorCode.PROVIDER_UNAVAILABLE}: timeout") from e
        except httpx.TransportError as e:
            logger.error(f"DNS provider transport error on {method} {path}: {e}")
            raise ProviderUnavailable(f"{ErrorCode.PROVIDER_UNAVAILABLE}: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"DNS provider request failed on {method} {path}: {e!r}")
            raise ProviderUnavailable(f"{ErrorCode.PROVIDER_UNAVAILABLE}: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code} error"
        errors = body.get("errors") if isinstance(body, dict) else None
        if not isinstance(errors, list):
            return f"HTTP {response.status_code} error"
        messages = [
            str(err.get("message", err)) if isinstance(err, dict) else str(err)
            for err in errors
            if err
        ]
        return "; ".join(messages) or f"HTTP {response.status_code} error"

    def _raise_for_failure(self, response: httpx.Response, action: str) -> dict:
        status = response.status_code
        if status == 429 or status >= 500:
            message = self._error_message(response)
            logger.error(f"DNS provider unavailable during {action}: {message}")
            raise ProviderUnavailable(f"{ErrorCode.PROVIDER_UNAVAILABLE}: {message}")
        if status >= 400:
            message = self._error_message(response)
            logger.error(f"DNS provider rejected {action}: {message}")
            raise ProviderError(f"{ErrorCode.PROVIDER_REJECTED}: {message}")

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"{ErrorCode.PROVIDER_REJECTED}: malformed response") from e
        if not isinstance(data, dict):
            raise ProviderError(f"{ErrorCode.PROVIDER_REJECTED}: malformed response")
        if not data.get("success"):
            message = self._error_message(response)
            logger.error(f"DNS provider reported failure for {action}: {message}")
            raise ProviderError(f"{ErrorCode.PROVIDER_REJECTED}: {message}")
        result = data.get("result")
        return result if isinstance(result, dict) else {}

    async def create_record(self, fqdn: str, record_type: str, value: str, proxied: bool) -> str:
        payload = {
            "type": record_type,
            "name": fqdn,
            "content": value,
            "ttl": 1,  # automatic
            "proxied": proxied,
        }
        response = await self._request("POST", self._records_path(), json=payload)
        result = self._raise_for_failure(response, f"create {record_type} {fqdn}")
        record_id = result.get("id")
        if not record_id:
            raise ProviderError(f"{ErrorCode.PROVIDER_REJECTED}: no record id returned")
        logger.info(f"DNS record created: {record_type} {fqdn} -> {record_id}")
        return record_id

    async def update_record(self, provider_record_id: str, value: str, proxied: bool) -> None:
        payload = {"content": value, "proxied": proxied}
        response = await self._request(
            "PATCH", self._records_path(provider_record_id), json=payload
        )
        self._raise_for_failure(response, f"update {provider_record_id}")
        logger.info(f"DNS record updated: {provider_record_id}")

    async def delete_record(self, provider_record_id: str) -> None:
        response = await self._request("DELETE", self._records_path(provider_record_id))
        if response.status_code == 404:
            # Already gone; deletes are idempotent by record id
            logger.info(f"DNS record {provider_record_id} already absent")
            return
        self._raise_for_failure(response, f"delete {provider_record_id}")
        logger.info(f"DNS record deleted: {provider_record_id}")
