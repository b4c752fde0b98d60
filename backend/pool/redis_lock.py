import uuid
import redis
from django.conf import settings


def get_redis():
    return redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


class SweepLock:
    """
    Single-sweeper guard for pool distribution.
    - acquire: SET NX PX
    - release: compare-and-delete

    Overlapping sweeps are still safe (the award constraint decides);
    the lock only keeps workers from doing the same work twice.
    """

    def __init__(self, key: str, ttl_seconds: int, client=None):
        self.key = key
        self.ttl_ms = int(ttl_seconds * 1000)
        self.token = uuid.uuid4().hex
        self.r = client or get_redis()

    def acquire(self) -> bool:
        return bool(
            self.r.set(
                self.key,
                self.token,
                nx=True,
                px=self.ttl_ms,
            )
        )

    def release(self) -> bool:
        # delete only if the token is still ours
        pipe = self.r.pipeline()
        try:
            pipe.watch(self.key)
            if pipe.get(self.key) == self.token:
                pipe.multi()
                pipe.delete(self.key)
                pipe.execute()
                return True
            pipe.unwatch()
        except redis.WatchError:
            return False
        finally:
            pipe.reset()
        return False

    def __enter__(self):
        return self.acquire()

    def __exit__(self, *exc):
        self.release()
        return False
