"""Ways of obtaining an authenticated Fitbit session.

Every authorizer hands out a ``requests`` session through ``session()`` and
can be asked once to ``reauthorize()`` when the API rejects its credentials.
"""

import logging
import os
import queue
import threading
import uuid
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlparse

from oauthlib.oauth2.rfc6749.errors import OAuth2Error
from requests.auth import HTTPBasicAuth
from requests_oauthlib import OAuth1Session, OAuth2Session
from requests_oauthlib.oauth1_session import TokenMissing, TokenRequestDenied

from fitbitweight import settings
from fitbitweight.console import console
from fitbitweight.errors import AuthorizationError, ExpiredTokenError, TokenCacheError
from fitbitweight.tokens import TokenCache

logger = logging.getLogger(__name__)

# Fitbit answers with every scope the user ever granted the app.
os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")

CALLBACK_TIMEOUT = 300


def extract_code(text, param="code"):
    """Return ``param`` from a pasted redirect URL, or the pasted text itself."""
    text = text.strip()
    value = parse_qs(urlparse(text).query).get(param, [None])[0]
    return value or text


def prompt(text):
    """Read one answer from stdin, treating end of input as no answer."""
    try:
        return console.input(text)
    except EOFError:
        return ""


def open_browser(url):
    try:
        webbrowser.open(url)
    except webbrowser.Error as e:
        logger.debug("Could not open a browser: %s", e)


class OAuth1Authorizer:
    """OAuth 1.0a signing with a consumer key and an access token pair."""

    def __init__(self, consumer_key, consumer_secret, access_token=None,
                 access_secret=None, browser=True):
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.access_token = access_token
        self.access_secret = access_secret
        self.browser = browser

    def session(self):
        if not (self.access_token and self.access_secret):
            self.authorize()
        return self._session()

    def reauthorize(self):
        self.authorize()
        return self._session()

    def _session(self):
        return OAuth1Session(
            self.consumer_key,
            client_secret=self.consumer_secret,
            resource_owner_key=self.access_token,
            resource_owner_secret=self.access_secret,
        )

    def authorize(self):
        oauth = OAuth1Session(
            self.consumer_key,
            client_secret=self.consumer_secret,
            callback_uri="oob",
        )
        try:
            oauth.fetch_request_token(settings.REQUEST_TOKEN_URL)
            auth_url = oauth.authorization_url(settings.OAUTH1_AUTHORIZE_URL)
            console.print("Get the verifier from:")
            console.print(auth_url, soft_wrap=True)
            if self.browser:
                open_browser(auth_url)
            answer = prompt("Enter verifier (or entire URL): ")
            if not answer.strip():
                raise AuthorizationError("no verifier entered")
            verifier = extract_code(answer, param="oauth_verifier")
            tokens = oauth.fetch_access_token(settings.ACCESS_TOKEN_URL, verifier=verifier)
        except (TokenRequestDenied, TokenMissing, ValueError) as e:
            raise AuthorizationError(f"could not obtain an OAuth 1.0a access token: {e}")

        self.access_token = tokens["oauth_token"]
        self.access_secret = tokens["oauth_token_secret"]
        console.print("[green]✓[/green] Pass these next time to skip authorization:")
        console.print(f"  --access-token {self.access_token} --access-secret {self.access_secret}")


class OAuth2Authorizer:
    """OAuth 2.0 with a cached token and a pasted authorization code."""

    def __init__(self, client_id, client_secret, cache=None, redirect_uri=None,
                 browser=True):
        self.client_id = client_id
        self.client_secret = client_secret
        self.cache = cache or TokenCache()
        self.redirect_uri = redirect_uri
        self.browser = browser

    def session(self):
        token = self.cached_token()
        if token is None:
            token = self.authorize()
        return self._session(token)

    def reauthorize(self):
        self.cache.clear()
        return self._session(self.authorize())

    def _session(self, token):
        return OAuth2Session(self.client_id, token=token)

    def cached_token(self):
        try:
            return self.cache.load()
        except ExpiredTokenError:
            logger.info("Cached token in %s has expired", self.cache.path)
        except TokenCacheError as e:
            if self.cache.path and os.path.exists(self.cache.path):
                logger.warning("Error getting token from %r: %s", self.cache.path, e)
            else:
                logger.debug("No cached token: %s", e)
        return None

    def authorize(self):
        oauth = OAuth2Session(
            self.client_id,
            scope=settings.SCOPES,
            redirect_uri=self.redirect_uri,
        )
        auth_url, _ = oauth.authorization_url(
            settings.AUTH_URL,
            state=uuid.uuid4().hex,
            expires_in=settings.TOKEN_LIFETIME,
        )
        code = self.read_code(auth_url)
        if not code:
            raise AuthorizationError("no authorization code entered")

        try:
            token = oauth.fetch_token(
                settings.TOKEN_URL,
                code=code,
                client_secret=self.client_secret,
            )
        except (OAuth2Error, ValueError) as e:
            raise AuthorizationError(f"could not exchange auth code for a token: {e}")
        self.cache.save(token)
        return token

    def read_code(self, auth_url):
        console.print("Get auth code from:")
        console.print(auth_url, soft_wrap=True)
        if self.browser:
            open_browser(auth_url)
        return extract_code(prompt("Enter auth code (or entire URL): "))


class _CallbackHandler(BaseHTTPRequestHandler):
    """Hand the ?code=... of the OAuth redirect to the waiting authorizer."""

    def do_GET(self):
        params = parse_qs(urlparse(self.path).query)
        code = params.get("code", [None])[0]
        error = params.get("error", [None])[0]
        if code:
            body = b"<h1>Authorization received. You may close this window.</h1>"
            self.send_response(200)
        elif error:
            body = f"<h1>Authorization failed: {error}</h1>".encode("utf-8")
            self.send_response(400)
        else:
            self.send_error(404)
            return
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(body)
        self.server.results.put((code, error))

    def log_message(self, format, *args):
        logger.debug("callback: " + format, *args)


class CallbackListener:
    """Local HTTP server on the redirect URI, served from one daemon thread."""

    def __init__(self, redirect_uri):
        parsed = urlparse(redirect_uri)
        port = parsed.port if parsed.port is not None else 80
        address = (parsed.hostname or "localhost", port)
        self.server = HTTPServer(address, _CallbackHandler)
        self.server.results = queue.Queue()
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)

    @property
    def port(self):
        return self.server.server_address[1]

    def start(self):
        self.thread.start()
        return self

    def wait(self, timeout=CALLBACK_TIMEOUT):
        try:
            code, error = self.server.results.get(timeout=timeout)
        except queue.Empty:
            raise AuthorizationError(f"no authorization redirect within {timeout} seconds")
        if error:
            raise AuthorizationError(f"authorization denied: {error}")
        return code

    def close(self):
        self.server.shutdown()
        self.server.server_close()


class OAuth2CallbackAuthorizer(OAuth2Authorizer):
    """OAuth 2.0 with refresh tokens and a local redirect listener."""

    def __init__(self, client_id, client_secret, cache=None,
                 redirect_uri=settings.DEFAULT_REDIRECT_URI, browser=True,
                 timeout=CALLBACK_TIMEOUT):
        super().__init__(client_id, client_secret, cache=cache,
                         redirect_uri=redirect_uri, browser=browser)
        self.timeout = timeout

    def session(self):
        token = self.cached_token()
        if token is None:
            token = self.refresh() or self.authorize()
        return self._session(token)

    def reauthorize(self):
        token = self.refresh()
        if token is None:
            self.cache.clear()
            token = self.authorize()
        return self._session(token)

    def refresh(self):
        stale = self.cache.load_any()
        if not stale or not stale.get("refresh_token"):
            return None
        oauth = OAuth2Session(self.client_id, token=stale)
        try:
            token = oauth.refresh_token(
                settings.TOKEN_URL,
                refresh_token=stale["refresh_token"],
                auth=HTTPBasicAuth(self.client_id, self.client_secret),
            )
        except (OAuth2Error, ValueError) as e:
            logger.warning("Could not refresh the access token: %s", e)
            return None
        logger.debug("Refreshed the access token")
        self.cache.save(token)
        return token

    def read_code(self, auth_url):
        listener = CallbackListener(self.redirect_uri).start()
        try:
            console.print("Authorize access in your browser:")
            console.print(auth_url, soft_wrap=True)
            if self.browser:
                open_browser(auth_url)
            console.print(f"[blue]Waiting for the redirect on {self.redirect_uri} ...[/blue]")
            return listener.wait(self.timeout)
        finally:
            listener.close()
