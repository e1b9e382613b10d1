import json
import os
import time

from fitbitweight.errors import ExpiredTokenError, InvalidTokenError, TokenCacheError

# Tokens this close to expiry are treated as already expired.
EXPIRY_DELTA = 10


def is_expired(token, now=None):
    expires_at = token.get("expires_at")
    if expires_at is None:
        return False
    try:
        expires_at = float(expires_at)
    except (TypeError, ValueError):
        raise InvalidTokenError(f"invalid expires_at value {expires_at!r}")
    now = time.time() if now is None else now
    return expires_at - EXPIRY_DELTA <= now


class TokenCache:
    """A single OAuth 2.0 token persisted as JSON.

    A cache without a path never hits and never writes.
    """

    def __init__(self, path=None):
        self.path = path or None

    def load(self, now=None):
        if not self.path:
            raise TokenCacheError("no cache file configured")
        try:
            with open(self.path) as f:
                token = json.load(f)
        except FileNotFoundError:
            raise TokenCacheError(f"{self.path} does not exist")
        except (OSError, ValueError) as e:
            raise TokenCacheError(f"could not read {self.path}: {e}")

        if not isinstance(token, dict):
            raise InvalidTokenError("invalid token")
        if is_expired(token, now):
            raise ExpiredTokenError("expired token")
        if not token.get("access_token"):
            raise InvalidTokenError("invalid token")
        return token

    def load_any(self):
        """Return the cached record even if expired, or None."""
        if not self.path or not os.path.isfile(self.path):
            return None
        try:
            with open(self.path) as f:
                token = json.load(f)
        except (OSError, ValueError):
            return None
        return token if isinstance(token, dict) else None

    def save(self, token):
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            data = json.dumps(token, indent=2)
        except (TypeError, ValueError) as e:
            raise TokenCacheError(f"could not encode token as json: {e}")
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, 'w') as f:
                f.write(data)
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise TokenCacheError(f"could not cache token in {self.path!r}: {e}")

    def clear(self):
        if self.path and os.path.exists(self.path):
            os.remove(self.path)
