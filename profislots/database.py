import logging
import re

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from profislots.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Пароль в URL не должен попадать в логи
MASKED_DATABASE_URL = re.sub(r":[^:@/]+@", ":***@", settings.database_url)

logger.info("Using database URL %s", MASKED_DATABASE_URL)

engine = create_async_engine(settings.database_url, echo=settings.sql_echo)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


# Зависимость для получения сессии БД
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
