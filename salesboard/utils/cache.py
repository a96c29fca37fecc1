import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from salesboard.core.config import REDIS_DSN, DIRECTORY_CACHE_TTL

logger = logging.getLogger(__name__)

# Клиент создается лениво: соединение открывается при первой команде
redis_client = redis.from_url(REDIS_DSN, decode_responses=True)


def get_cache_key(*args: Any) -> str:
    """
    Собирает ключ кэша из частей: get_cache_key("directory", "branches")
    -> "directory:branches".

    Raises:
        ValueError: Если части ключа не переданы
    """
    if not args:
        raise ValueError("Cache key cannot be empty")

    parts = []
    for arg in args:
        if isinstance(arg, dict):
            parts.append("-".join(f"{k}:{v}" for k, v in sorted(arg.items())))
        elif isinstance(arg, (list, tuple, set)):
            parts.append("-".join(str(item) for item in arg))
        else:
            parts.append(str(arg))

    return ":".join(parts)


async def get_cached_data(key: str) -> Optional[Any]:
    """
    Читает JSON из кэша. Недоступность Redis трактуется как промах кэша.

    Returns:
        Optional[Any]: Данные из кэша или None
    """
    try:
        data = await redis_client.get(key)
        if data:
            return json.loads(data)
        return None
    except Exception as e:
        logger.warning(f"Кэш недоступен при чтении {key}: {e}")
        return None


async def set_cached_data(key: str, data: Any, ttl: int = DIRECTORY_CACHE_TTL) -> bool:
    """
    Сохраняет данные в кэш в виде JSON.

    Args:
        key: Ключ
        data: Данные, сериализуемые в JSON
        ttl: Время жизни в секундах

    Returns:
        bool: True если запись прошла успешно
    """
    try:
        await redis_client.set(key, json.dumps(data), ex=ttl)
        return True
    except Exception as e:
        logger.warning(f"Кэш недоступен при записи {key}: {e}")
        return False


async def invalidate_cache(
    key: Optional[str] = None, pattern: Optional[str] = None
) -> int:
    """
    Удаляет ключ или все ключи по паттерну (например, "directory:*").

    Returns:
        int: Количество удаленных ключей
    """
    try:
        if key:
            return await redis_client.delete(key)
        elif pattern:
            keys = await redis_client.keys(pattern)
            if keys:
                return await redis_client.delete(*keys)
        return 0
    except Exception as e:
        logger.warning(f"Не удалось сбросить кэш ({key or pattern}): {e}")
        return 0
