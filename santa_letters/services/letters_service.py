"""
In-memory letter queue.

Letters start in `pending` and move to `sent` once a flush has dispatched
them. A letter is always in exactly one of the two lists. Nothing survives
a restart.
"""

import asyncio
import uuid
from collections.abc import Awaitable, Callable

from santa_letters.infrastructure.observability.logging import get_logger
from santa_letters.models.domain.letter_domain import Letter

logger = get_logger(__name__)

LetterSender = Callable[[Letter], Awaitable[str]]


class LettersService:
    """
    Queue of letters awaiting dispatch.

    The flush is all-or-nothing: every pending letter is sent concurrently,
    and only if all sends succeed are they moved to `sent`. One flush runs at
    a time; letters created while a flush is in flight wait for the next one.
    """

    def __init__(self, sender: LetterSender | None = None):
        self._sender = sender
        self._pending_letters: list[Letter] = []
        self._sent_letters: list[Letter] = []
        self._flush_lock = asyncio.Lock()

    @property
    def pending_letters(self) -> list[Letter]:
        """Live view of the pending list; mutated by later queue operations."""
        return self._pending_letters

    @property
    def sent_letters(self) -> list[Letter]:
        return self._sent_letters

    async def create(self, username: str, address: str, message: str) -> Letter:
        letter = Letter(
            id=str(uuid.uuid4()),
            username=username,
            address=address,
            message=message,
        )
        self._pending_letters.append(letter)
        logger.info("Letter queued", letter_id=letter.id, username=username)
        return letter

    async def create_batch(self, letters: list[Letter]) -> list[Letter]:
        self._pending_letters.extend(letters)
        logger.info("Letter batch queued", count=len(letters))
        return letters

    async def flush_pending(self) -> list[Letter]:
        """
        Dispatch every pending letter and move them to `sent`.

        Returns:
            list[Letter]: The letters moved by this flush

        Raises:
            DispatchError: If any send fails; `pending` is left untouched
        """
        async with self._flush_lock:
            batch = list(self._pending_letters)
            if not batch:
                return []

            if self._sender is not None:
                await asyncio.gather(*(self._sender(letter) for letter in batch))

            # pending is append-only while the lock is held, so the batch is its prefix
            del self._pending_letters[: len(batch)]
            self._sent_letters.extend(batch)

            logger.info(
                "Pending letters flushed",
                flushed=len(batch),
                still_pending=len(self._pending_letters),
                total_sent=len(self._sent_letters),
            )
            return batch

    async def send_pending_letters(self) -> list[Letter]:
        """Flush pending letters and return everything ever sent."""
        await self.flush_pending()
        return self._sent_letters
