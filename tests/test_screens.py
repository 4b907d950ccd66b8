"""Keyboard-driven tests for the list app and the product picker."""

from __future__ import annotations

import asyncio

from upsell.picker_modal import ProductPickerModal
from upsell.upsell_app import UpsellBuilderApp


async def open_picker(app, pilot) -> ProductPickerModal:
    await pilot.press("a", "e")
    await pilot.pause()
    picker = app.screen
    assert isinstance(picker, ProductPickerModal)
    return picker


def test_closing_picker_does_not_reload_catalog(make_catalog_group, fake_fetcher_cls):
    fetcher = fake_fetcher_cls({"": [[make_catalog_group(1), make_catalog_group(2)]]})

    async def scenario():
        app = UpsellBuilderApp(fetcher)
        async with app.run_test() as pilot:
            picker = await open_picker(app, pilot)
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert len(picker.catalog.state.loaded_groups) == 2

            await pilot.press("escape")
            await pilot.pause()
            await app.workers.wait_for_complete()
            assert not isinstance(app.screen, ProductPickerModal)
            return app, picker

    app, picker = asyncio.run(scenario())
    assert fetcher.calls == [("", 1, 10)]
    assert picker.catalog.closed
    assert picker.catalog.state.loaded_groups == ()
    assert picker.catalog.state.has_more is False
    assert len(app.selection_list) == 1
    assert app.selection_list.groups[0].is_placeholder


def test_closing_picker_ignores_pending_load(make_catalog_group, fake_fetcher_cls):
    async def scenario():
        gate = asyncio.Event()
        fetcher = fake_fetcher_cls({"": [[make_catalog_group(1)]]}, gates={"": gate})
        app = UpsellBuilderApp(fetcher)
        async with app.run_test() as pilot:
            picker = await open_picker(app, pilot)
            assert picker.catalog.state.is_loading

            await pilot.press("escape")
            gate.set()
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()
            return fetcher, picker

    fetcher, picker = asyncio.run(scenario())
    assert fetcher.calls == [("", 1, 10)]
    assert picker.catalog.state.loaded_groups == ()
    assert picker.catalog.state.has_more is False


def test_confirmed_selection_replaces_placeholder(make_catalog_group, fake_fetcher_cls):
    fetcher = fake_fetcher_cls({"": [[make_catalog_group(1), make_catalog_group(2)]]})

    async def scenario():
        app = UpsellBuilderApp(fetcher)
        async with app.run_test() as pilot:
            await open_picker(app, pilot)
            await app.workers.wait_for_complete()
            await pilot.pause()

            # Cursor starts on the first product header: select all its variants.
            await pilot.press("enter", "ctrl+a")
            await pilot.pause()
            assert not isinstance(app.screen, ProductPickerModal)
            return app

    app = asyncio.run(scenario())
    (group,) = app.selection_list.groups
    assert not group.is_placeholder
    assert group.remote_id == 1
    assert [s.key for s in group.sub_items] == ["1-100", "1-101"]
    assert app.status_message == "Added 1 product(s)"


def test_search_is_debounced_before_fetching(make_catalog_group, fake_fetcher_cls):
    fetcher = fake_fetcher_cls({"": [[make_catalog_group(1)]], "sh": [[make_catalog_group(5)]]})

    async def scenario():
        app = UpsellBuilderApp(fetcher)
        async with app.run_test() as pilot:
            picker = await open_picker(app, pilot)
            await app.workers.wait_for_complete()

            await pilot.press("s", "h")
            assert picker.search_text == "sh"
            assert fetcher.calls == [("", 1, 10)]

            await pilot.pause(0.6)
            await app.workers.wait_for_complete()
            await pilot.pause()
            return picker

    picker = asyncio.run(scenario())
    assert fetcher.calls == [("", 1, 10), ("sh", 1, 10)]
    assert picker.catalog.state.query == "sh"
    assert [g.remote_id for g in picker.catalog.state.loaded_groups] == [5]


def test_grab_and_drop_moves_product_row(fake_fetcher_cls):
    async def scenario():
        app = UpsellBuilderApp(fake_fetcher_cls({}))
        async with app.run_test() as pilot:
            await pilot.press("a", "a")
            first, second = app.selection_list.keys()
            assert app.cursor_index == 1

            await pilot.press("m")
            assert app.reorder_engine.is_dragging
            await pilot.press("k", "m")
            await pilot.pause()
            return app, [second, first]

    app, expected = asyncio.run(scenario())
    assert app.selection_list.keys() == expected
    assert not app.reorder_engine.is_dragging
    assert app.cursor_index == 0


def test_cancelled_drag_leaves_order_alone(fake_fetcher_cls):
    async def scenario():
        app = UpsellBuilderApp(fake_fetcher_cls({}))
        async with app.run_test() as pilot:
            await pilot.press("a", "a")
            before = app.selection_list.keys()
            await pilot.press("m", "k", "escape")
            await pilot.pause()
            return app, before

    app, before = asyncio.run(scenario())
    assert app.selection_list.keys() == before
    assert not app.reorder_engine.is_dragging
    assert app.status_message == "Move cancelled"


def test_status_counts_only_inserted_products(make_group, fake_fetcher_cls):
    async def scenario():
        app = UpsellBuilderApp(fake_fetcher_cls({}))
        async with app.run_test() as pilot:
            await pilot.press("a")
            placeholder = app.selection_list.groups[0]
            app.selection_list.add_placeholder()
            app._apply_picker_result(app.selection_list.keys()[1], [make_group("x", ["1-100"])])
            # "y" only repeats a variant that is already listed, so it is dropped.
            app._apply_picker_result(placeholder.key, [make_group("y", ["1-100"]), make_group("z", ["2-200"])])
            await pilot.pause()
            return app

    app = asyncio.run(scenario())
    assert app.selection_list.keys() == ["z", "x"]
    assert app.status_message == "Added 1 product(s)"
