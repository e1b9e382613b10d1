import logging

from oauthlib.oauth2 import TokenExpiredError

from fitbitweight import settings
from fitbitweight.errors import ApiError

logger = logging.getLogger(__name__)

TIME_SERIES_PATH = "/1/user/-/body/weight/date/today/max.json"
WEIGHT_LOG_PATH = "/1/user/-/body/log/weight/date/{date}/30d.json"


class WeightApi:
    """Body-weight endpoints of the Fitbit Web API."""

    def __init__(self, authorizer, base_url=settings.API_URL, timeout=30):
        self.authorizer = authorizer
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = authorizer.session()

    def get_json(self, path):
        """GET ``path`` and decode the reply.

        A rejected or expired token triggers one re-authorization and one
        retry of the same request.
        """
        url = self.base_url + path
        for attempt in range(2):
            if attempt:
                self.session = self.authorizer.reauthorize()
            try:
                response = self.session.get(url, timeout=self.timeout)
            except TokenExpiredError:
                logger.warning("Access token expired, re-authorizing")
                continue
            if response.status_code != 401:
                break
            logger.warning("Access token rejected by %s, re-authorizing", url)
        else:
            raise ApiError(f"GET {url}: access token rejected after re-authorization", 401)

        if not response.ok:
            raise ApiError(
                f"GET {url} failed: {response.status_code} {response.text[:200]}",
                response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"could not decode reply from {url}: {e}")

    def time_series(self):
        """Daily averaged weights, oldest first. Entries carry no time of day."""
        return self.get_json(TIME_SERIES_PATH).get("body-weight") or []

    def weight_logs(self, end_date):
        """Raw weight log entries of the 30 days ending at ``end_date``."""
        path = WEIGHT_LOG_PATH.format(date=end_date.strftime("%Y-%m-%d"))
        return self.get_json(path).get("weight") or []
