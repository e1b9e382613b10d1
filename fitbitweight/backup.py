import logging
import sys
from datetime import date, datetime, timedelta

from fitbitweight.errors import ApiError

logger = logging.getLogger(__name__)

WINDOW = timedelta(days=30)


def first_date(entries):
    value = entries[0].get("dateTime")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise ApiError(f'Could not parse timeseries date value "{value}": {e}')


def windows(start, today):
    """Yield the end dates of consecutive 30-day log windows covering start..today."""
    # One day of slack so that no value is missed.
    end = start - timedelta(days=1)
    while end <= today:
        end += WINDOW
        yield end


def format_entry(entry):
    return f"{entry['date']} {entry['time'][:5]} {float(entry['weight']):.1f}"


def run_backup(api, out=None, today=None):
    """Print every weight measurement ever logged, returning how many were printed.

    The time series endpoint only has one averaged value per day and no
    times, so it is used just to find the first recorded date. The raw
    entries are then fetched window by window from the weight log endpoint.
    The user's registration date is no substitute, data may be backfilled.
    """
    out = out or sys.stdout
    today = today or date.today()

    entries = api.time_series()
    if not entries:
        logger.info("The fitbit API returned no values.")
        return 0

    start = first_date(entries)
    logger.debug("First weight recorded on %s", start)

    count = 0
    for end in windows(start, today):
        logger.debug("Fetching weight log for the 30 days up to %s", end)
        for entry in api.weight_logs(end):
            print(format_entry(entry), file=out)
            count += 1
    out.flush()
    return count
