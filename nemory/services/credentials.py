"""Owner credential lookup: user id to decrypted Notion access token."""

import logging

from cryptography.fernet import InvalidToken
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nemory.db.encryption import decrypt
from nemory.models.integration import NotionIntegration

logger = logging.getLogger(__name__)


class IntegrationNotConnectedError(Exception):
    """The owner has no usable Notion integration."""

    def __init__(self, user_id: str, detail: str = ""):
        self.user_id = user_id
        message = f"Notion integration not connected for user {user_id}"
        super().__init__(f"{message} ({detail})" if detail else message)


class CredentialStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_notion_token(self, user_id: str) -> str:
        async with self.session_factory() as db:
            result = await db.execute(select(NotionIntegration).where(NotionIntegration.user_id == user_id))
            integration = result.scalar_one_or_none()

        if not integration or not integration.access_token:
            raise IntegrationNotConnectedError(user_id)

        try:
            return decrypt(integration.access_token)
        except InvalidToken:
            logger.error("Stored Notion token for user %s could not be decrypted", user_id)
            raise IntegrationNotConnectedError(user_id, "stored token is unreadable")
