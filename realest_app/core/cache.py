import json
import logging
import urllib.parse
from typing import Any, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential

from .breaker import breaker
from .settings import settings

logger = logging.getLogger(__name__)


class Cache:
    """Upstash Redis over its REST API.

    A missing configuration turns every call into a miss or a no-op. An
    unreachable Redis does the same for reads and writes, while ``incr``
    raises so a failed invalidation reaches the caller.
    """

    def __init__(self, redis_url: str | None = None, redis_token: str | None = None):
        self.redis_url = (redis_url or "").rstrip("/")
        self.redis_token = redis_token
        self.enabled = bool(self.redis_url and self.redis_token)

        self.headers = {
            "Authorization": f"Bearer {self.redis_token}",
            "Content-Type": "application/json",
        }

    def _url(self, command: str, key: str) -> str:
        encoded_key = urllib.parse.quote(str(key), safe="")
        return f"{self.redis_url}/{command}/{encoded_key}"

    @retry(
        stop=stop_after_attempt(2), wait=wait_exponential(multiplier=1, min=1, max=10)
    )
    async def connect(self):
        if not self.enabled:
            logger.info("Upstash Redis not configured; queue cache disabled.")
            return

        async def handler():
            async with httpx.AsyncClient() as client:
                logger.info("Connecting to Upstash Redis...")
                res = await client.get(f"{self.redis_url}/ping", headers=self.headers)
                if res.status_code == 200 and res.json().get("result") == "PONG":
                    logger.info("Connected to Upstash Redis.")
                else:
                    raise ConnectionError("Upstash Redis ping failed.")

        await breaker.call(handler)

    async def get(self, key: str) -> Optional[str]:
        if not self.enabled:
            return None

        async def handler():
            try:
                async with httpx.AsyncClient() as client:
                    res = await client.get(self._url("get", key), headers=self.headers)
                    if res.status_code == 200:
                        return res.json().get("result")
                    if res.status_code == 404:
                        return None
                    raise ConnectionError(f"Redis GET failed ({res.status_code})")
            except httpx.RequestError as e:
                logger.error("Network error during Redis GET:", exc_info=e)
            except ConnectionError as e:
                logger.error("Connection error during Redis GET:", exc_info=e)
            return None

        return await breaker.call(handler)

    async def set(self, key: str, value: str, ttl: int = 3600) -> None:
        if key is None or value is None:
            raise ValueError("Cache key and value cannot be None")
        if not self.enabled:
            return

        async def handler():
            try:
                async with httpx.AsyncClient() as client:
                    url = f"{self._url('set', key)}?EX={ttl}"
                    res = await client.post(url, headers=self.headers, content=value)
                    if res.status_code == 200:
                        logger.debug("Cache set successfully for key: %s", key)
                        return
                    raise ConnectionError(f"Redis SET failed ({res.status_code})")
            except httpx.RequestError as e:
                logger.error("Network error during Redis SET:", exc_info=e)
            except ConnectionError as e:
                logger.error("Connection error during Redis SET:", exc_info=e)

        await breaker.call(handler)

    async def incr(self, key: str) -> Optional[int]:
        if not self.enabled:
            return None

        async def handler():
            async with httpx.AsyncClient() as client:
                res = await client.post(self._url("incr", key), headers=self.headers)
                if res.status_code == 200:
                    return int(res.json().get("result"))
                raise ConnectionError(f"Redis INCR failed ({res.status_code})")

        return await breaker.call(handler)

    async def get_json(self, key: str) -> Optional[Any]:
        data = await self.get(key)
        if not data:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            logger.error("Invalid JSON format in key: %s", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int = 3600) -> None:
        logger.debug("Setting JSON cache for key: %s", key)
        await self.set(key, json.dumps(value), ttl)


cache = Cache(settings.UPSTASH_REDIS_URL, settings.UPSTASH_REDIS_TOKEN)
