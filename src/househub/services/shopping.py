"""Shopping category and shopping item service.

Categories embed their items, so any item change also drops the owning
category entry and the home's category list.
"""

from __future__ import annotations

from typing import Any

from househub.cache.aside import CacheAside
from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys
from househub.core.models import ShoppingCategory, ShoppingItem
from househub.errors import CategoryNotInHomeError
from househub.events.schemas import Action, DomainEvent, Module
from househub.persistence.base import UNSET, ShoppingRepository


class ShoppingService:
    def __init__(self, shopping: ShoppingRepository, aside: CacheAside):
        self.shopping = shopping
        self.aside = aside

    @staticmethod
    def _category_keys(category: ShoppingCategory) -> InvalidationSet:
        return InvalidationSet(
            CacheKeys.shopping_category(category.id),
            CacheKeys.shopping_categories_for_home(category.home_id),
        )

    @classmethod
    def _item_keys(cls, category: ShoppingCategory, item_id: int | None = None) -> InvalidationSet:
        keys = cls._category_keys(category) | [CacheKeys.items_for_shopping_category(category.id)]
        if item_id is not None:
            keys = keys | [CacheKeys.shopping_item(item_id)]
        return keys

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def create_category(
        self, home_id: int, name: str, color: str | None = None, icon: str | None = None
    ) -> ShoppingCategory:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.shopping_categories_for_home(home_id)),
            write=lambda: self.shopping.create_category(home_id, name, color=color, icon=icon),
            event=lambda category: DomainEvent(
                Module.SHOPPING_CATEGORY, Action.CREATED, category
            ),
        )

    async def get_categories_for_home(self, home_id: int) -> list[ShoppingCategory]:
        return await self.aside.read_through(
            CacheKeys.shopping_categories_for_home(home_id),
            list[ShoppingCategory],
            lambda: self.shopping.list_categories_for_home(home_id),
        )

    async def get_category(self, category_id: int, home_id: int) -> ShoppingCategory:
        """Category by id, only if it belongs to home_id.

        Raises:
            CategoryNotInHomeError: If the category belongs to another home
        """
        category = await self.aside.read_through(
            CacheKeys.shopping_category(category_id),
            ShoppingCategory,
            lambda: self.shopping.get_category(category_id),
        )
        if category.home_id != home_id:
            raise CategoryNotInHomeError(category_id, home_id)
        return category

    async def edit_category(
        self,
        category_id: int,
        name: str | None = None,
        icon: str | None = None,
        color: str | None = None,
    ) -> ShoppingCategory:
        category = await self.shopping.get_category(category_id)
        return await self.aside.mutate(
            invalidate=self._category_keys(category),
            write=lambda: self.shopping.edit_category(
                category_id, name=name, icon=icon, color=color
            ),
            event=lambda updated: DomainEvent(Module.SHOPPING_CATEGORY, Action.UPDATED, updated),
        )

    async def delete_category(self, category_id: int) -> None:
        category = await self.shopping.get_category(category_id)
        keys = self._item_keys(category) | [
            CacheKeys.shopping_item(item.id) for item in category.items
        ]
        await self.aside.mutate(
            invalidate=keys,
            write=lambda: self.shopping.delete_category(category_id),
            event=lambda _: DomainEvent(
                Module.SHOPPING_CATEGORY, Action.DELETED, {"id": category_id}
            ),
        )

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def create_item(
        self,
        category_id: int,
        user_id: int,
        name: str,
        image: str | None = None,
        link: str | None = None,
    ) -> ShoppingItem:
        category = await self.shopping.get_category(category_id)
        return await self.aside.mutate(
            invalidate=self._item_keys(category),
            write=lambda: self.shopping.create_item(
                category_id, user_id, name, image=image, link=link
            ),
            event=lambda item: DomainEvent(Module.SHOPPING_ITEM, Action.CREATED, item),
        )

    async def get_item(self, item_id: int) -> ShoppingItem:
        return await self.aside.read_through(
            CacheKeys.shopping_item(item_id),
            ShoppingItem,
            lambda: self.shopping.get_item(item_id),
        )

    async def get_items_for_category(self, category_id: int) -> list[ShoppingItem]:
        return await self.aside.read_through(
            CacheKeys.items_for_shopping_category(category_id),
            list[ShoppingItem],
            lambda: self.shopping.list_items_for_category(category_id),
        )

    async def _resolve_item(self, item_id: int) -> tuple[ShoppingItem, ShoppingCategory]:
        item = await self.shopping.get_item(item_id)
        category = await self.shopping.get_category(item.category_id)
        return item, category

    async def delete_item(self, item_id: int) -> None:
        _, category = await self._resolve_item(item_id)
        await self.aside.mutate(
            invalidate=self._item_keys(category, item_id),
            write=lambda: self.shopping.delete_item(item_id),
            event=lambda _: DomainEvent(Module.SHOPPING_ITEM, Action.DELETED, {"id": item_id}),
        )

    async def mark_bought(self, item_id: int) -> ShoppingItem:
        _, category = await self._resolve_item(item_id)
        return await self.aside.mutate(
            invalidate=self._item_keys(category, item_id),
            write=lambda: self.shopping.mark_bought(item_id),
            event=lambda item: DomainEvent(Module.SHOPPING_ITEM, Action.UPDATED, item),
            repopulate=lambda item: {CacheKeys.shopping_item(item_id): item},
        )

    async def edit_item(
        self,
        item_id: int,
        name: Any = UNSET,
        image: Any = UNSET,
        link: Any = UNSET,
        is_bought: Any = UNSET,
        bought_date: Any = UNSET,
    ) -> ShoppingItem:
        _, category = await self._resolve_item(item_id)
        return await self.aside.mutate(
            invalidate=self._item_keys(category, item_id),
            write=lambda: self.shopping.edit_item(
                item_id,
                name=name,
                image=image,
                link=link,
                is_bought=is_bought,
                bought_date=bought_date,
            ),
            event=lambda item: DomainEvent(Module.SHOPPING_ITEM, Action.UPDATED, item),
        )
