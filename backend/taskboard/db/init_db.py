import asyncio
import logging

from sqlmodel import select

from taskboard.core.config import settings
from taskboard.core.logging_config import configure_logging
from taskboard.core.security import get_password_hash
from taskboard.db.session import AsyncSessionLocal
from taskboard.models.user import User

logger = logging.getLogger(__name__)


async def init_superuser() -> User | None:
    if not (settings.FIRST_SUPERUSER_EMAIL and settings.FIRST_SUPERUSER_PASSWORD):
        return None

    email = str(settings.FIRST_SUPERUSER_EMAIL).lower()
    async with AsyncSessionLocal() as session:
        result = await session.exec(select(User).where(User.email == email))
        user = result.one_or_none()
        if user:
            if not user.is_global_admin:
                user.is_global_admin = True
                session.add(user)
                await session.commit()
                logger.info("Promoted existing user %s to global admin", user.id)
            return user

        superuser = User(
            email=email,
            name=settings.FIRST_SUPERUSER_NAME or "Administrator",
            hashed_password=get_password_hash(settings.FIRST_SUPERUSER_PASSWORD),
            is_global_admin=True,
        )
        session.add(superuser)
        await session.commit()
        await session.refresh(superuser)
        logger.info("Created first superuser %s", superuser.email)
        return superuser


async def init() -> None:
    await init_superuser()


if __name__ == "__main__":  # pragma: no cover
    configure_logging()
    asyncio.run(init())
