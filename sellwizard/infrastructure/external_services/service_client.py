"""Shared HTTP plumbing for the AI edge functions."""

import httpx
import structlog

from sellwizard.application.interfaces.market_services import (
    CreditLimitReachedError,
    ExternalServiceError,
)
from sellwizard.config import settings

logger = structlog.get_logger(__name__)

DEFAULT_CREDIT_LIMIT_MESSAGE = "Monthly credit limit reached. Upgrade your plan for more."


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None


class ServiceClient:
    """
    POSTs JSON to one edge function and returns the decoded body.

    A 403 is the monthly credit limit and surfaces the service's own message;
    every other failure is raised as ``error_cls`` for the caller to report.
    """

    def __init__(
        self,
        url: str,
        *,
        error_cls: type[ExternalServiceError],
        api_key: str = settings.services_api_key,
        timeout: float = settings.service_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._transport = transport
        self._error_cls = error_cls
        self._timeout = timeout
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    async def post(self, payload: dict) -> dict:  # type: ignore[type-arg]
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(self._url, json=payload, headers=self._headers)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                status_code = exc.response.status_code
                message = _error_message(exc.response)
                logger.error(
                    "service_request_failed",
                    url=self._url,
                    status_code=status_code,
                    response=exc.response.text,
                )
                if status_code == 403:
                    raise CreditLimitReachedError(message or DEFAULT_CREDIT_LIMIT_MESSAGE) from exc
                raise self._error_cls(f"Service returned {status_code}: {message or exc.response.text}") from exc
            except httpx.RequestError as exc:
                logger.error("service_connection_failed", url=self._url, error=str(exc))
                raise self._error_cls(f"Failed to reach service: {exc}") from exc
            except ValueError as exc:
                raise self._error_cls("Service returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise self._error_cls("Service returned an unexpected body")
        if isinstance(data.get("error"), str):
            raise self._error_cls(data["error"])
        return data
