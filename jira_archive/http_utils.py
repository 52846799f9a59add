from __future__ import annotations

from typing import Any

import httpx

from jira_archive.errors import JiraAPIError, JiraTransportError

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "jira-archive/0.1 (+httpx)",
}


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    ok_statuses: frozenset[int] | set[int] = frozenset({200}),
    **kwargs: Any,
) -> httpx.Response:
    """Issue a single request; no retries.

    Anything that prevents a usable response (timeouts and undecodable
    bodies included) becomes JiraTransportError. A status outside
    ``ok_statuses`` becomes JiraAPIError with the raw body attached.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as exc:
        raise JiraTransportError(f"request timed out: {method} {url}: {type(exc).__name__}") from exc
    except httpx.RequestError as exc:
        raise JiraTransportError(f"failed to execute request: {method} {url}: {type(exc).__name__}: {exc}") from exc

    if response.status_code not in ok_statuses:
        raise JiraAPIError(response.status_code, response.text, method=method, url=url)
    return response


def decode_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise JiraAPIError(
            response.status_code,
            f"failed to decode response: {exc}",
            method=response.request.method,
            url=str(response.request.url),
        ) from exc
