"""HTTP client for the remote product catalog."""

from __future__ import annotations

import asyncio
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.error import URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from upsell.config import API_BASE_URL, API_KEY, API_TIMEOUT_SECONDS, PAGE_SIZE
from upsell.errors import FetchFailure
from upsell.models import CatalogGroup, CatalogSubItem

logger = logging.getLogger(__name__)


def _parse_sub_item(raw: Any, parent_id: int) -> CatalogSubItem:
    if not isinstance(raw, dict):
        raise FetchFailure("Variant entry must be an object")
    try:
        price = Decimal(str(raw.get("price", "0")))
        if not price.is_finite() or price < 0:
            raise FetchFailure(f"Variant price must be >= 0, got {raw.get('price')!r}")
        return CatalogSubItem(
            item_id=int(raw["id"]),
            parent_id=int(raw.get("product_id", parent_id)),
            title=str(raw.get("title", "")),
            price=price,
        )
    except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
        raise FetchFailure("Malformed variant entry", exc) from exc


def _parse_group(raw: Any) -> CatalogGroup:
    if not isinstance(raw, dict):
        raise FetchFailure("Product entry must be an object")
    try:
        remote_id = int(raw["id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise FetchFailure("Malformed product entry", exc) from exc

    image = raw.get("image")
    image_src = image.get("src") if isinstance(image, dict) else None
    variants = raw.get("variants") or []
    if not isinstance(variants, list):
        raise FetchFailure("Product 'variants' must be a list")

    return CatalogGroup(
        remote_id=remote_id,
        title=str(raw.get("title", "")),
        image_src=image_src,
        sub_items=tuple(_parse_sub_item(variant, remote_id) for variant in variants),
    )


def parse_catalog_page(payload: Any) -> list[CatalogGroup]:
    """Convert a decoded search response into catalog groups."""
    # The search endpoint answers with JSON null for queries with no hits.
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise FetchFailure("Search response must be a list of products")
    return [_parse_group(entry) for entry in payload]


class CatalogClient:
    """Fetch catalog pages from the product search endpoint."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        *,
        api_key: str = API_KEY,
        timeout_seconds: float = API_TIMEOUT_SECONDS,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    def build_request(self, query: str, page: int, page_size: int = PAGE_SIZE) -> Request:
        params = {"search": query, "page": str(page), "limit": str(page_size)}
        return Request(
            f"{self._base_url}/search?{urlencode(params)}",
            headers={"x-api-key": self._api_key, "Accept": "application/json"},
        )

    def fetch_page(self, query: str, page: int, page_size: int = PAGE_SIZE) -> list[CatalogGroup]:
        if not self._base_url:
            raise FetchFailure("Catalog base URL is not configured (UPSELL_API_BASE_URL)")
        if not self._api_key:
            raise FetchFailure("Catalog API key is not configured (UPSELL_API_KEY)")

        request = self.build_request(query, page, page_size)
        logger.debug("fetch_page query=%r page=%d limit=%d", query, page, page_size)
        try:
            with urlopen(request, timeout=self._timeout_seconds) as response:
                payload = json.loads(response.read().decode("utf-8"))
        except (URLError, OSError) as exc:
            raise FetchFailure("Catalog request failed", exc) from exc
        except ValueError as exc:
            raise FetchFailure("Catalog response is not valid JSON", exc) from exc
        return parse_catalog_page(payload)

    async def afetch_page(self, query: str, page: int, page_size: int = PAGE_SIZE) -> list[CatalogGroup]:
        """Run ``fetch_page`` off the event loop."""
        return await asyncio.to_thread(self.fetch_page, query, page, page_size)
