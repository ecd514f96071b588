"""Tests for the bill and bill-category services."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import pytest

from househub.cache.accessor import Hit
from househub.cache.keys import CacheKeys
from househub.core.models import Bill, Home, User
from househub.errors import BillAlreadyPaidError
from househub.events.publisher import InMemoryPublisher
from househub.events.schemas import Action, Module
from househub.services import Services

if TYPE_CHECKING:
    from househub.cache.accessor import TypedCache
    from tests.conftest import ControllableStore

PERIOD_START = datetime(2026, 1, 1, tzinfo=timezone.utc)
PERIOD_END = datetime(2026, 1, 31, tzinfo=timezone.utc)


async def create_bill(services: Services, home: Home, owner: User, **kwargs: object) -> Bill:
    return await services.bills.create_bill(
        home.id, owner.id, 120.5, PERIOD_START, PERIOD_END, type="electricity", **kwargs
    )


class TestBillService:
    """Bill reads, payment and deletion."""

    @pytest.mark.asyncio
    async def test_mark_bill_payed(
        self,
        services: Services,
        home: Home,
        owner: User,
        store: ControllableStore,
        cache: TypedCache,
        publisher: InMemoryPublisher,
    ) -> None:
        """The bill key is dropped before the write, then refreshed with the paid state."""
        bill = await create_bill(services, home, owner)
        assert (await services.bills.get_bill(bill.id)).is_payed is False
        publisher.clear()
        store.calls.clear()

        paid = await services.bills.mark_bill_payed(bill.id)

        assert paid.is_payed is True
        assert paid.payment_date is not None
        assert store.keys_for("delete") == [
            CacheKeys.bill(bill.id),
            CacheKeys.bills_for_home(home.id),
        ]
        assert store.keys_for("set") == [CacheKeys.bill(bill.id)]
        assert len(publisher.events) == 1
        assert publisher.events[0].module == Module.BILL
        assert publisher.events[0].action == Action.MARKED_PAYED
        assert await cache.get(CacheKeys.bill(bill.id), Bill) == Hit(paid)

    @pytest.mark.asyncio
    async def test_paying_twice_is_rejected(
        self, services: Services, home: Home, owner: User, publisher: InMemoryPublisher
    ) -> None:
        bill = await create_bill(services, home, owner)
        await services.bills.mark_bill_payed(bill.id)
        publisher.clear()

        with pytest.raises(BillAlreadyPaidError):
            await services.bills.mark_bill_payed(bill.id)

        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_list_and_delete(
        self, services: Services, home: Home, owner: User, store: ControllableStore
    ) -> None:
        first = await create_bill(services, home, owner)
        second = await create_bill(services, home, owner, ocr_data={"lines": ["kWh 240"]})
        assert [b.id for b in await services.bills.get_bills_for_home(home.id)] == [
            first.id,
            second.id,
        ]

        await services.bills.delete_bill(first.id)

        assert CacheKeys.bills_for_home(home.id) not in store.inner
        bills = await services.bills.get_bills_for_home(home.id)
        assert [b.id for b in bills] == [second.id]
        assert bills[0].ocr_data == {"lines": ["kWh 240"]}


class TestBillCategoryService:
    """Bill categories and their effect on bills."""

    @pytest.mark.asyncio
    async def test_default_color(self, services: Services, home: Home) -> None:
        category = await services.bill_categories.create_category(home.id, "Utilities")

        assert category.color == "#FBEB9E"
        assert await services.bill_categories.get_categories(home.id) == [category]

    @pytest.mark.asyncio
    async def test_update_category(self, services: Services, home: Home) -> None:
        category = await services.bill_categories.create_category(home.id, "Rent", "#000000")
        await services.bill_categories.get_category(category.id)

        updated = await services.bill_categories.update_category(category.id, name="Housing")

        assert updated.name == "Housing"
        assert updated.color == "#000000"
        assert (await services.bill_categories.get_category(category.id)).name == "Housing"

    @pytest.mark.asyncio
    async def test_delete_category_detaches_bills(
        self, services: Services, home: Home, owner: User
    ) -> None:
        """Bills survive their category and their cached copies are refreshed."""
        category = await services.bill_categories.create_category(home.id, "Internet")
        bill = await create_bill(services, home, owner, bill_category_id=category.id)
        assert (await services.bills.get_bill(bill.id)).bill_category_id == category.id

        await services.bill_categories.delete_category(category.id)

        assert (await services.bills.get_bill(bill.id)).bill_category_id is None
        assert await services.bill_categories.get_categories(home.id) == []
