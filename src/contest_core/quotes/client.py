"""Quote provider client — Yahoo Finance chart endpoint over REST."""

from __future__ import annotations

from typing import Any

import httpx

from contest_core.errors import UpstreamUnavailable


class YahooChartClient:
    """Async client for the ``/v8/finance/chart`` endpoint."""

    def __init__(
        self,
        base_url: str = "https://query1.finance.yahoo.com",
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=self.timeout_s,
                transport=self._transport,
                # the provider rejects requests without a browser-ish agent
                headers={"User-Agent": "Mozilla/5.0 (compatible; stock-contest/0.1)"},
            )
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def get_chart(self, ticker: str) -> dict[str, Any]:
        """Fetch the most recent daily chart for *ticker*.

        Returns the decoded JSON body. Raises UpstreamUnavailable on
        transport errors, non-2xx responses and undecodable bodies.
        """
        http = await self._get_http()
        try:
            resp = await http.get(
                f"{self.base_url}/v8/finance/chart/{ticker}",
                params={"interval": "1d", "range": "1d"},
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailable(
                f"Quote provider error: {exc.response.status_code} for {ticker}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Quote provider unreachable: {exc}") from exc
        except ValueError as exc:
            raise UpstreamUnavailable(f"Quote provider returned invalid JSON for {ticker}") from exc
