import redis

from checkout_engine.utils.retry import redis_retry
from checkout_engine.utils.settings import REDIS_URL
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in one step: only the holder's token removes the key
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Short-lived keyed locks in redis.

    Used as the enqueue idempotency key: while a task for a key is in flight
    a second enqueue for the same key is refused.
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def task_key(task_name: str, unique_id) -> str:
        return f"task:{task_name}:{unique_id}"

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        logger.info(f"Acquire lock {key}")
        #SET key token NX EX ttl, expires on its own if the holder dies
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
