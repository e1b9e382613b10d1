from datetime import date

import pytest
from oauthlib.oauth2 import TokenExpiredError

from conftest import FakeAuthorizer, FakeResponse, FakeSession
from fitbitweight.api import WeightApi
from fitbitweight.errors import ApiError

SERIES = {"body-weight": [{"dateTime": "2014-06-01", "value": "82.1"}]}


def test_time_series_reads_body_weight_entries():
    session = FakeSession(FakeResponse(200, SERIES))
    api = WeightApi(FakeAuthorizer(session), base_url="https://api.example.com/")

    assert api.time_series() == SERIES["body-weight"]
    assert session.urls == ["https://api.example.com/1/user/-/body/weight/date/today/max.json"]


def test_weight_logs_requests_thirty_day_window():
    session = FakeSession(FakeResponse(200, {"weight": [{"date": "2014-06-01"}]}))
    api = WeightApi(FakeAuthorizer(session))

    assert api.weight_logs(date(2014, 6, 30)) == [{"date": "2014-06-01"}]
    assert session.urls == [
        "https://api.fitbit.com/1/user/-/body/log/weight/date/2014-06-30/30d.json"
    ]


def test_missing_keys_mean_no_entries():
    session = FakeSession(FakeResponse(200, {}), FakeResponse(200, {"weight": None}))
    api = WeightApi(FakeAuthorizer(session))

    assert api.time_series() == []
    assert api.weight_logs(date(2014, 6, 30)) == []


def test_rejected_token_reauthorizes_once_and_retries():
    stale = FakeSession(FakeResponse(401, {"errors": [{"errorType": "expired_token"}]}))
    fresh = FakeSession(FakeResponse(200, SERIES))
    authorizer = FakeAuthorizer(stale, fresh)
    api = WeightApi(authorizer)

    assert api.time_series() == SERIES["body-weight"]
    assert authorizer.reauthorized == 1
    assert api.session is fresh


def test_expired_token_error_reauthorizes():
    stale = FakeSession(TokenExpiredError())
    fresh = FakeSession(FakeResponse(200, SERIES))
    authorizer = FakeAuthorizer(stale, fresh)

    assert WeightApi(authorizer).time_series() == SERIES["body-weight"]
    assert authorizer.reauthorized == 1


def test_second_rejection_is_fatal():
    authorizer = FakeAuthorizer(
        FakeSession(FakeResponse(401, {})),
        FakeSession(FakeResponse(401, {})),
    )
    with pytest.raises(ApiError) as excinfo:
        WeightApi(authorizer).time_series()
    assert excinfo.value.status_code == 401
    assert authorizer.reauthorized == 1


def test_server_error_is_not_retried():
    authorizer = FakeAuthorizer(FakeSession(FakeResponse(500, text="boom")))
    with pytest.raises(ApiError, match="500 boom"):
        WeightApi(authorizer).time_series()
    assert authorizer.reauthorized == 0


def test_undecodable_reply():
    authorizer = FakeAuthorizer(FakeSession(FakeResponse(200, text="<html>")))
    with pytest.raises(ApiError, match="could not decode"):
        WeightApi(authorizer).time_series()
