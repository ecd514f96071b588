"""Poll service.

A poll is open until closed; closed is terminal. Voting on a closed poll
is rejected by the system of record, so no VOTED event is published.
"""

from __future__ import annotations

from datetime import datetime

from househub.cache.aside import CacheAside
from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys
from househub.core.models import Poll, Vote
from househub.errors import RevoteNotAllowedError
from househub.events.schemas import Action, DomainEvent, Module
from househub.persistence.base import PollRepository


class PollService:
    def __init__(self, polls: PollRepository, aside: CacheAside):
        self.polls = polls
        self.aside = aside

    @staticmethod
    def _poll_keys(poll: Poll) -> InvalidationSet:
        return InvalidationSet(CacheKeys.poll(poll.id), CacheKeys.polls_for_home(poll.home_id))

    async def create_poll(
        self,
        home_id: int,
        question: str,
        type: str,
        options: list[str],
        allow_revote: bool = False,
        ends_at: datetime | None = None,
    ) -> Poll:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.polls_for_home(home_id)),
            write=lambda: self.polls.create(
                home_id, question, type, options, allow_revote=allow_revote, ends_at=ends_at
            ),
            event=lambda poll: DomainEvent(Module.POLL, Action.CREATED, poll),
        )

    async def get_poll(self, poll_id: int) -> Poll:
        return await self.aside.read_through(
            CacheKeys.poll(poll_id), Poll, lambda: self.polls.get(poll_id)
        )

    async def get_polls_for_home(self, home_id: int) -> list[Poll]:
        return await self.aside.read_through(
            CacheKeys.polls_for_home(home_id),
            list[Poll],
            lambda: self.polls.list_for_home(home_id),
        )

    async def close_poll(self, poll_id: int) -> Poll:
        poll = await self.polls.get(poll_id)
        return await self.aside.mutate(
            invalidate=self._poll_keys(poll),
            write=lambda: self.polls.close(poll_id),
            event=lambda closed: DomainEvent(Module.POLL, Action.CLOSED, closed),
            repopulate=lambda closed: {CacheKeys.poll(poll_id): closed},
        )

    async def delete_poll(self, poll_id: int) -> None:
        poll = await self.polls.get(poll_id)
        await self.aside.mutate(
            invalidate=self._poll_keys(poll),
            write=lambda: self.polls.delete(poll_id),
            event=lambda _: DomainEvent(Module.POLL, Action.DELETED, {"id": poll_id}),
        )

    async def vote(self, user_id: int, option_id: int) -> Vote:
        """Vote for an option.

        Raises:
            NotFoundError: If the option does not exist
            PollClosedError: If the option's poll is closed
        """
        poll = await self.polls.get_by_option(option_id)
        return await self.aside.mutate(
            invalidate=self._poll_keys(poll),
            write=lambda: self.polls.vote(user_id, option_id),
            event=lambda vote: DomainEvent(Module.POLL, Action.VOTED, vote),
        )

    async def unvote(self, user_id: int, poll_id: int) -> None:
        """Withdraw the user's votes on a poll.

        Raises:
            RevoteNotAllowedError: If the poll does not allow revoting
        """
        poll = await self.polls.get(poll_id)
        if not poll.allow_revote:
            raise RevoteNotAllowedError(poll_id)

        await self.aside.mutate(
            invalidate=self._poll_keys(poll),
            write=lambda: self.polls.unvote(user_id, poll_id),
            event=lambda _: DomainEvent(
                Module.POLL, Action.UNVOTED, {"user_id": user_id, "poll_id": poll_id}
            ),
        )
