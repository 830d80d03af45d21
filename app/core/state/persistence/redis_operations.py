"""Atomic Redis operations for session documents

Session documents are JSON objects stored under one key with a TTL. Writes run
inside WATCH/MULTI so a concurrent write to the same key is retried instead of
interleaved.
"""
import json
from typing import Any, Dict, Optional, Tuple

from redis import Redis, RedisError, WatchError


class RedisAtomic:
    """Atomic get, set and delete of JSON session documents"""

    def __init__(self, redis_client: Redis, max_retries: int = 3):
        self.redis = redis_client
        self.max_retries = max_retries

    def execute_atomic(
        self,
        key: str,
        operation: str,
        value: Optional[Dict[str, Any]] = None,
        ttl: Optional[int] = None
    ) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        """Execute one operation on key

        Args:
            key: Redis key
            operation: 'get', 'set' or 'delete'
            value: Document for set
            ttl: Expiry in seconds for set

        Returns:
            Tuple of (success, document, error_message)
        """
        if operation == "set" and (value is None or ttl is None):
            return False, None, "Missing value or TTL for set operation"
        if operation not in ("get", "set", "delete"):
            return False, None, f"Unknown operation: {operation}"

        for _ in range(self.max_retries):
            pipe = self.redis.pipeline()
            try:
                pipe.watch(key)
                pipe.multi()

                if operation == "get":
                    pipe.get(key)
                    result = pipe.execute()
                    if not result or not result[0]:
                        return True, None, None
                    return True, json.loads(result[0]), None

                if operation == "set":
                    pipe.setex(key, ttl, json.dumps(value))
                else:
                    pipe.delete(key)
                pipe.execute()
                return True, None, None

            except WatchError:
                continue
            except json.JSONDecodeError as e:
                return False, None, f"Invalid JSON data for key {key}: {str(e)}"
            except RedisError as e:
                return False, None, f"Redis operation failed: {str(e)}"
            finally:
                pipe.reset()

        return False, None, f"Max retries ({self.max_retries}) exceeded for {operation}"
