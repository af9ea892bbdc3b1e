"""Rate-limited, cached client for the remote video API."""

import logging
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlencode

import httpx

from gbtool.api.cache import ResponseCache
from gbtool.api.models import ListPage
from gbtool.api.rate_gate import RateGate
from gbtool.config.schema import DEFAULT_BASE_URL
from gbtool.utils.errors import ApiError, EmptyResponseError, TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "gb-tool"

StopPredicate = Callable[[dict[str, Any]], bool]


class ApiClient:
    """Client for the remote API.

    Requests go through a shared :class:`RateGate` and are answered from the
    :class:`ResponseCache` whenever possible. The API key is sent with every
    request but never appears in cache keys, error messages or logs.

    Example:
        >>> async with ApiClient(api_key, cache) as client:
        ...     page = await client.fetch_list("videos/", {"limit": "10"})
    """

    def __init__(
        self,
        api_key: str,
        cache: ResponseCache,
        gate: RateGate | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: API credential
            cache: Response cache consulted before every request
            gate: Rate gate shared with other clients of the same API
            base_url: API root, ending in a slash
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.cache = cache
        self.gate = gate or RateGate()
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    def signature(self, path: str, params: Mapping[str, Any]) -> str:
        """Credential-free request identity: full URL plus sorted query."""
        query = sorted(
            (key, str(value)) for key, value in params.items() if key != "api_key"
        )
        url = self.base_url + path.lstrip("/")
        return f"{url}?{urlencode(query)}" if query else url

    async def call(self, path: str, params: Mapping[str, Any]) -> dict[str, Any]:
        """Fetch a response envelope, from cache when fresh.

        The cache is checked before waiting for the gate and again once the
        gate is held, so requests that queued behind an identical one are
        answered without a second fetch.

        Raises:
            TransportError: Network or HTTP failure
            ApiError: The envelope reports a failure
            EmptyResponseError: No usable body
        """
        signature = self.signature(path, params)

        cached = await self.cache.get(signature)
        if cached is not None:
            logger.debug(f"Cache hit: {signature}")
            return cached

        async with self.gate.turn() as turn:
            cached = await self.cache.get(signature)
            if cached is not None:
                logger.debug(f"Cache hit after wait: {signature}")
                return cached

            await turn.wait()
            logger.debug(f"GET {signature}")

            query = {key: str(value) for key, value in params.items()}
            query["api_key"] = self.api_key
            try:
                response = await self.http.get(path.lstrip("/"), params=query)
            except httpx.HTTPError as e:
                raise TransportError(
                    f"Request failed for {signature}: {type(e).__name__}", signature
                ) from e

            data = self._parse(response, signature)
            await self.cache.put(signature, data)
            return data

    def _parse(self, response: httpx.Response, signature: str) -> dict[str, Any]:
        try:
            data = response.json() if response.content else None
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error") not in (None, "", "OK"):
            raise ApiError(
                f"API error for {signature}: {data['error']}",
                signature,
                remote_message=data["error"],
                status_code=data.get("status_code"),
            )

        if response.is_error:
            raise TransportError(
                f"HTTP {response.status_code} for {signature}", signature
            )

        if not isinstance(data, dict) or data.get("error") != "OK":
            raise EmptyResponseError(f"Empty response for {signature}", signature)

        return data

    async def fetch_item(self, path: str, params: Mapping[str, Any]) -> dict[str, Any]:
        """Fetch a single resource's ``results`` object.

        Raises:
            EmptyResponseError: If ``results`` is missing or not an object
        """
        data = await self.call(path, params)
        results = data.get("results")
        if not isinstance(results, dict) or not results:
            raise EmptyResponseError(
                f"Expected a single result for {self.signature(path, params)}",
                self.signature(path, params),
            )
        return results

    async def fetch_list(self, path: str, params: Mapping[str, Any]) -> ListPage:
        """Fetch one page of a list endpoint."""
        data = await self.call(path, params)
        return _to_page(data)

    async def autopage(
        self,
        path: str,
        params: Mapping[str, Any],
        stop: StopPredicate | None = None,
    ) -> ListPage:
        """Fetch every page of a list endpoint by offset and merge them.

        Paging ends when the reported total is reached, when a page comes
        back empty, or when ``stop`` matches an item. In the last case the
        results end with the matching item.
        """
        start = int(params.get("offset", 0) or 0)
        merged = ListPage(offset=start)
        results: list[dict[str, Any]] = []

        while True:
            page = await self.fetch_list(path, {**params, "offset": str(start + len(results))})
            merged.limit = page.limit
            merged.number_of_total_results = page.number_of_total_results

            if not page.results:
                break

            if _extend_until(results, page.results, stop):
                logger.debug(f"Stopped paging {path} at a match after {len(results)} items")
                break

            if start + len(results) >= page.number_of_total_results:
                break

        merged.results = results
        merged.number_of_page_results = len(results)
        return merged

    async def search(
        self,
        query: str,
        resources: list[str],
        params: Mapping[str, Any],
    ) -> ListPage:
        """Fetch one page of search results."""
        search_params = {**params, "query": query, "resources": ",".join(resources)}
        return await self.fetch_list("search/", search_params)

    async def autopage_search(
        self,
        query: str,
        resources: list[str],
        params: Mapping[str, Any],
        stop: StopPredicate | None = None,
    ) -> ListPage:
        """Fetch search results page by page until a page is empty or ``stop`` matches.

        Search results report no reliable total, so only those two
        conditions end paging.
        """
        page_number = int(params.get("page", 1) or 1)
        merged = ListPage()
        results: list[dict[str, Any]] = []

        while True:
            page = await self.search(query, resources, {**params, "page": str(page_number)})
            merged.limit = page.limit
            merged.number_of_total_results = page.number_of_total_results

            if not page.results:
                break

            if _extend_until(results, page.results, stop):
                break

            page_number += 1

        merged.results = results
        merged.number_of_page_results = len(results)
        return merged


def _to_page(data: dict[str, Any]) -> ListPage:
    results = data.get("results")
    page_data = {**data, "results": results if isinstance(results, list) else []}
    return ListPage.model_validate(page_data)


def _extend_until(
    results: list[dict[str, Any]],
    page: list[dict[str, Any]],
    stop: StopPredicate | None,
) -> bool:
    """Append ``page`` to ``results``, stopping after the first match."""
    for item in page:
        results.append(item)
        if stop is not None and stop(item):
            return True
    return False
