import os
import sys

from fitbitweight.console import console
from fitbitweight.errors import ConfigError

CONFIG_DIR = os.path.expanduser("~/.config/fitbitweight")
SECRETS_PATH = os.path.join(CONFIG_DIR, ".secrets")
DEFAULT_CACHE_PATH = os.path.join(CONFIG_DIR, "token.json")

API_URL = "https://api.fitbit.com"
AUTH_URL = "https://www.fitbit.com/oauth2/authorize"
TOKEN_URL = "https://api.fitbit.com/oauth2/token"
REQUEST_TOKEN_URL = "https://api.fitbit.com/oauth/request_token"
OAUTH1_AUTHORIZE_URL = "https://www.fitbit.com/oauth/authorize"
ACCESS_TOKEN_URL = "https://api.fitbit.com/oauth/access_token"

SCOPES = ["weight"]
DEFAULT_CLIENT_ID = "228XTZ"
DEFAULT_REDIRECT_URI = "http://localhost:8080/"
# 30 days, so there is plenty of time to refresh before expiry.
TOKEN_LIFETIME = "2592000"

SECRET_KEYS = ["CLIENT_ID", "CLIENT_SECRET", "CONSUMER_KEY", "CONSUMER_SECRET"]
ENV_PREFIX = "FITBIT_"
FLAGS = {
    "CLIENT_ID": "--client-id",
    "CLIENT_SECRET": "--client-secret",
    "CONSUMER_KEY": "--consumer-key",
    "CONSUMER_SECRET": "--consumer-secret",
}
DEFAULTS = {"CLIENT_ID": DEFAULT_CLIENT_ID}


def read_secrets(path=None):
    path = path or SECRETS_PATH
    secrets = {}
    if os.path.isfile(path):
        with open(path) as f:
            for line in f:
                if '=' in line:
                    key, value = line.strip().split('=', 1)
                    secrets[key] = value
    return secrets


def write_secrets(secrets, path=None):
    path = path or SECRETS_PATH
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w') as f:
        for key in SECRET_KEYS:
            if secrets.get(key):
                f.write(f"{key}={secrets[key]}\n")
    os.chmod(path, 0o600)


def load_secrets(required, overrides=None, path=None, interactive=None):
    """Resolve credentials from flags, environment, the secrets file and defaults.

    Missing required keys are prompted for when stdin is a terminal and the
    answers are written back to the secrets file. Otherwise a ConfigError
    names the flag that would have supplied the value.
    """
    if interactive is None:
        interactive = sys.stdin.isatty()
    stored = read_secrets(path)
    overrides = overrides or {}

    resolved = {}
    for key in SECRET_KEYS:
        value = (
            overrides.get(key)
            or os.environ.get(ENV_PREFIX + key)
            or stored.get(key)
            or DEFAULTS.get(key)
        )
        if value:
            resolved[key] = value

    missing = [key for key in required if not resolved.get(key)]
    if not missing:
        return resolved
    if not interactive:
        key = missing[0]
        raise ConfigError(
            f"{FLAGS[key]} not specified. "
            "Register an app at https://dev.fitbit.com to get one."
        )

    for key in missing:
        try:
            resolved[key] = console.input(f"{key.replace('_', ' ').title()}: ").strip()
        except EOFError:
            resolved[key] = ""
        if not resolved[key]:
            raise ConfigError(f"{FLAGS[key]} not specified.")
    stored.update({key: resolved[key] for key in missing})
    write_secrets(stored, path)
    return resolved
