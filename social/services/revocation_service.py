import logging
from typing import Optional

import redis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError

logger = logging.getLogger(__name__)


class RevocationService:
    """
    Redis-backed set of revoked session token ids.

    Without REDIS_URL the service stays disconnected and every token is
    treated as not revoked, so sessions fall back to signature + expiry only.
    """
    REVOKED_KEY_PREFIX = "revoked_token:"

    def __init__(self, config):
        self.config = config
        self.redis_client: Optional[redis.Redis] = None
        self._connect()

    def _connect(self) -> None:
        try:
            redis_url = self.config.REDIS_URL
            if not redis_url:
                return

            connection_params = {
                'decode_responses': True,
                'socket_connect_timeout': self.config.REDIS_SOCKET_CONNECT_TIMEOUT,
                'socket_timeout': self.config.REDIS_SOCKET_TIMEOUT,
                'retry_on_timeout': True,
                'health_check_interval': 30
            }

            self.redis_client = redis.from_url(redis_url, **connection_params)
            self.redis_client.ping()
        except (RedisConnectionError, RedisError, ValueError) as e:
            logger.warning(f"RevocationService: redis unavailable, tokens are stateless ({e})")
            self.redis_client = None

    def _get_key(self, jti: str) -> str:
        return f"{self.REVOKED_KEY_PREFIX}{jti}"

    def revoke(self, jti: str, ttl_seconds: int) -> bool:
        if not self.redis_client or not jti:
            return False
        if ttl_seconds <= 0:
            # Already expired, nothing left to revoke
            return True

        try:
            return bool(self.redis_client.setex(self._get_key(jti), int(ttl_seconds), "1"))
        except RedisError as e:
            logger.warning(f"RevocationService: failed to revoke token: {e}")
            return False

    def is_revoked(self, jti: str) -> bool:
        if not self.redis_client or not jti:
            return False

        try:
            return self.redis_client.exists(self._get_key(jti)) > 0
        except RedisError:
            return False

    def is_available(self) -> bool:
        if not self.redis_client:
            return False
        try:
            self.redis_client.ping()
            return True
        except RedisError:
            return False


def init_revocation_service(app, config) -> RevocationService:
    service = RevocationService(config)
    app.extensions['revocation_service'] = service
    return service


def get_revocation_service() -> Optional[RevocationService]:
    from flask import current_app
    return current_app.extensions.get('revocation_service')
