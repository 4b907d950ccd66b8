"""Shared factories for upsell-builder tests."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from upsell.models import CatalogGroup, CatalogSubItem, Group, SubItem


def catalog_group(remote_id: int, variant_count: int = 2, title: str | None = None) -> CatalogGroup:
    return CatalogGroup(
        remote_id=remote_id,
        title=title or f"Product {remote_id}",
        image_src=f"https://cdn.example/{remote_id}.png",
        sub_items=tuple(
            CatalogSubItem(
                item_id=remote_id * 100 + idx,
                parent_id=remote_id,
                title=f"Variant {idx}",
                price=Decimal("10.00") + idx,
            )
            for idx in range(variant_count)
        ),
    )


def committed_group(key: str, sub_keys: list[str] | tuple[str, ...] = ()) -> Group:
    return Group(
        key=key,
        title=key.upper(),
        remote_id=None,
        sub_items=[SubItem(key=s, remote_id=None, title=s, price=Decimal("5")) for s in sub_keys],
    )


class FakeFetcher:
    """Async fetch collaborator serving canned pages per query.

    ``gates`` holds an ``asyncio.Event`` per query; a fetch for a gated query
    waits until its event is set.
    """

    def __init__(self, pages: dict[str, list[list[CatalogGroup]]], gates: dict[str, asyncio.Event] | None = None):
        self.pages = pages
        self.gates = gates or {}
        self.calls: list[tuple[str, int, int]] = []
        self.fail_next = False

    async def __call__(self, query: str, page: int, page_size: int) -> list[CatalogGroup]:
        self.calls.append((query, page, page_size))
        gate = self.gates.get(query)
        if gate is not None:
            await gate.wait()
        if self.fail_next:
            self.fail_next = False
            raise OSError("connection reset")
        query_pages = self.pages.get(query, [])
        if page - 1 < len(query_pages):
            return list(query_pages[page - 1])
        return []


@pytest.fixture
def make_catalog_group():
    return catalog_group


@pytest.fixture
def make_group():
    return committed_group


@pytest.fixture
def fake_fetcher_cls():
    return FakeFetcher
