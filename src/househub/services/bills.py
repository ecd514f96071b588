"""Bill and bill-category services.

Paying a bill is terminal: paying it again is rejected by the system of
record and produces no event.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from househub.cache.aside import CacheAside
from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys
from househub.core.models import Bill, BillCategory
from househub.events.schemas import Action, DomainEvent, Module
from househub.persistence.base import BillCategoryRepository, BillRepository


class BillService:
    def __init__(self, bills: BillRepository, aside: CacheAside):
        self.bills = bills
        self.aside = aside

    async def create_bill(
        self,
        home_id: int,
        uploaded_by: int,
        total_amount: float,
        period_start: datetime,
        period_end: datetime,
        type: str = "",
        bill_category_id: int | None = None,
        ocr_data: Any = None,
    ) -> Bill:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.bills_for_home(home_id)),
            write=lambda: self.bills.create(
                home_id,
                uploaded_by,
                total_amount,
                period_start,
                period_end,
                type=type,
                bill_category_id=bill_category_id,
                ocr_data=ocr_data,
            ),
            event=lambda bill: DomainEvent(Module.BILL, Action.CREATED, bill),
        )

    async def get_bill(self, bill_id: int) -> Bill:
        return await self.aside.read_through(
            CacheKeys.bill(bill_id), Bill, lambda: self.bills.get(bill_id)
        )

    async def get_bills_for_home(self, home_id: int) -> list[Bill]:
        return await self.aside.read_through(
            CacheKeys.bills_for_home(home_id),
            list[Bill],
            lambda: self.bills.list_for_home(home_id),
        )

    async def delete_bill(self, bill_id: int) -> None:
        bill = await self.bills.get(bill_id)
        await self.aside.mutate(
            invalidate=InvalidationSet(
                CacheKeys.bill(bill_id), CacheKeys.bills_for_home(bill.home_id)
            ),
            write=lambda: self.bills.delete(bill_id),
            event=lambda _: DomainEvent(Module.BILL, Action.DELETED, {"id": bill_id}),
        )

    async def mark_bill_payed(self, bill_id: int) -> Bill:
        """Mark a bill paid and cache its new state.

        Raises:
            NotFoundError: If the bill does not exist
            BillAlreadyPaidError: If the bill was already paid
        """
        bill = await self.bills.get(bill_id)
        return await self.aside.mutate(
            invalidate=InvalidationSet(
                CacheKeys.bill(bill_id), CacheKeys.bills_for_home(bill.home_id)
            ),
            write=lambda: self.bills.mark_payed(bill_id),
            event=lambda paid: DomainEvent(Module.BILL, Action.MARKED_PAYED, paid),
            repopulate=lambda paid: {CacheKeys.bill(bill_id): paid},
        )


class BillCategoryService:
    def __init__(
        self, categories: BillCategoryRepository, bills: BillRepository, aside: CacheAside
    ):
        self.categories = categories
        self.bills = bills
        self.aside = aside

    async def create_category(
        self, home_id: int, name: str, color: str | None = None
    ) -> BillCategory:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.bill_categories_for_home(home_id)),
            write=lambda: self.categories.create(home_id, name, color),
            event=lambda category: DomainEvent(Module.BILL_CATEGORY, Action.CREATED, category),
        )

    async def get_categories(self, home_id: int) -> list[BillCategory]:
        return await self.aside.read_through(
            CacheKeys.bill_categories_for_home(home_id),
            list[BillCategory],
            lambda: self.categories.list_for_home(home_id),
        )

    async def get_category(self, category_id: int) -> BillCategory:
        return await self.aside.read_through(
            CacheKeys.bill_category(category_id),
            BillCategory,
            lambda: self.categories.get(category_id),
        )

    async def update_category(
        self, category_id: int, name: str | None = None, color: str | None = None
    ) -> BillCategory:
        category = await self.categories.get(category_id)
        return await self.aside.mutate(
            invalidate=InvalidationSet(
                CacheKeys.bill_category(category_id),
                CacheKeys.bill_categories_for_home(category.home_id),
            ),
            write=lambda: self.categories.update(category_id, name=name, color=color),
            event=lambda updated: DomainEvent(Module.BILL_CATEGORY, Action.UPDATED, updated),
        )

    async def delete_category(self, category_id: int) -> None:
        # Bills of the category lose their category reference
        category = await self.categories.get(category_id)
        bills = await self.bills.list_for_category(category_id)

        keys = InvalidationSet(
            CacheKeys.bill_category(category_id),
            CacheKeys.bill_categories_for_home(category.home_id),
            CacheKeys.bills_for_home(category.home_id),
            [CacheKeys.bill(bill.id) for bill in bills],
        )
        await self.aside.mutate(
            invalidate=keys,
            write=lambda: self.categories.delete(category_id),
            event=lambda _: DomainEvent(Module.BILL_CATEGORY, Action.DELETED, {"id": category_id}),
        )
