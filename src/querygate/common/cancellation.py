from __future__ import annotations

import asyncio
from typing import Dict, Optional

from querygate.common.logger import get_logger

logger = get_logger("cancellation")


class CancellationToken:
    """One-shot cancellation signal for a single query."""

    def __init__(self, query_id: str):
        self.query_id = query_id
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class CancellationRegistry:
    """Maps in-flight query ids to their cancellation tokens.

    Owned by the component that starts query tasks. Tokens are registered
    when a query starts and released when it finishes, whatever the outcome.
    Must be used from the event loop thread.
    """

    def __init__(self):
        self._tokens: Dict[str, CancellationToken] = {}

    def register(self, query_id: str) -> CancellationToken:
        token = CancellationToken(query_id)
        self._tokens[query_id] = token
        return token

    def cancel(self, query_id: str) -> bool:
        """Signals and forgets the token; False when no such query is running."""
        token = self._tokens.pop(query_id, None)
        if token is None:
            return False
        token.cancel()
        logger.info(f"Cancellation requested for query {query_id}")
        return True

    def release(self, token: CancellationToken) -> None:
        if self._tokens.get(token.query_id) is token:
            del self._tokens[token.query_id]

    def get(self, query_id: str) -> Optional[CancellationToken]:
        return self._tokens.get(query_id)

    def __contains__(self, query_id: str) -> bool:
        return query_id in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)
