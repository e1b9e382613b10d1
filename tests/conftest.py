import json
import time

import pytest


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """Replays queued responses (or exceptions) and records requested URLs."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.urls = []

    def get(self, url, **kwargs):
        self.urls.append(url)
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeAuthorizer:
    def __init__(self, first, *renewed):
        self.first = first
        self.renewed = list(renewed)
        self.reauthorized = 0

    def session(self):
        return self.first

    def reauthorize(self):
        self.reauthorized += 1
        return self.renewed.pop(0)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    from fitbitweight import settings

    monkeypatch.setattr(settings, "SECRETS_PATH", str(tmp_path / "config" / ".secrets"))
    for key in settings.SECRET_KEYS:
        monkeypatch.delenv(settings.ENV_PREFIX + key, raising=False)


@pytest.fixture
def valid_token():
    return {
        "access_token": "access",
        "refresh_token": "refresh",
        "token_type": "Bearer",
        "expires_in": 28800,
        "expires_at": time.time() + 28800,
        "scope": ["weight"],
        "user_id": "ABC123",
    }


@pytest.fixture
def expired_token(valid_token):
    return dict(valid_token, expires_at=time.time() - 60)
