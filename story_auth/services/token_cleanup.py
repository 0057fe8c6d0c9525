import asyncio
import logging
from typing import Dict, Optional

from story_auth.repositories.refresh_tokens import RefreshTokenStore
from story_auth.repositories.token_blacklist import TokenBlacklist
from story_auth.utils.logger import EventTypes, log_event

logger = logging.getLogger(__name__)


class TokenCleanupService:
    """
    Periodic sweep of expired refresh tokens and blacklist entries.

    MongoDB's TTL monitor normally removes these documents already; the sweep
    keeps the stores bounded on engines (or test doubles) without TTL indexes.
    """

    def __init__(
        self,
        refresh_tokens: RefreshTokenStore,
        blacklist: TokenBlacklist,
        cleanup_interval_hours: float = 24,
    ):
        self.refresh_tokens = refresh_tokens
        self.blacklist = blacklist
        self.cleanup_interval_hours = cleanup_interval_hours
        self.is_running = False
        self.task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the token cleanup background task"""
        if self.is_running:
            return

        self.is_running = True
        self.task = asyncio.create_task(self._cleanup_loop())
        logger.info("Token cleanup service started")

    async def stop(self):
        """Stop the token cleanup background task"""
        if not self.is_running:
            return

        self.is_running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        self.task = None
        logger.info("Token cleanup service stopped")

    async def run_once(self) -> Dict[str, int]:
        removed = {
            "refresh_tokens": await self.refresh_tokens.cleanup_expired(),
            "blacklisted_tokens": await self.blacklist.cleanup_expired(),
        }
        log_event(EventTypes.TOKEN_CLEANUP_COMPLETED, removed)
        return removed

    async def _cleanup_loop(self):
        """Main cleanup loop"""
        while self.is_running:
            try:
                await self.run_once()
            except Exception as e:
                # keep the loop alive; the next sweep retries
                logger.error(f"Error during token cleanup: {e}")

            await asyncio.sleep(self.cleanup_interval_hours * 3600)
