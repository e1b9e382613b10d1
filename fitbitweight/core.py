from argparse import ArgumentParser
import logging
import sys

import requests

from fitbitweight import settings
from fitbitweight.api import WeightApi
from fitbitweight.backup import run_backup
from fitbitweight.console import configure_logging, console
from fitbitweight.errors import FitbitWeightError
from fitbitweight.oauth import OAuth1Authorizer, OAuth2Authorizer, OAuth2CallbackAuthorizer
from fitbitweight.tokens import TokenCache

logger = logging.getLogger(__name__)

AUTH_METHODS = ["oauth1", "oauth2", "oauth2-callback"]


def build_parser():
    parser = ArgumentParser(
        description='Print every Fitbit body-weight measurement as "date time weight" lines'
    )
    parser.add_argument('--auth', choices=AUTH_METHODS, default='oauth2',
                        help='Authorization method (default: oauth2)')
    parser.add_argument('--client-id', help='OAuth2 client ID (see dev.fitbit.com)')
    parser.add_argument('--client-secret', help='OAuth2 client (consumer) secret')
    parser.add_argument('--cache-path', default=settings.DEFAULT_CACHE_PATH,
                        help='JSON file holding the cached OAuth2 token, "" disables caching '
                             '(default: %(default)s)')
    parser.add_argument('--redirect-uri',
                        help='OAuth2 redirect URI registered for the app '
                             f'(oauth2-callback default: {settings.DEFAULT_REDIRECT_URI})')
    parser.add_argument('--consumer-key', help='OAuth1 consumer key')
    parser.add_argument('--consumer-secret', help='OAuth1 consumer secret')
    parser.add_argument('--access-token', help='OAuth1 access token')
    parser.add_argument('--access-secret', help='OAuth1 access token secret')
    parser.add_argument('--no-browser', action='store_true',
                        help='Do not open the authorization URL in a browser')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def build_authorizer(args, interactive=None):
    browser = not args.no_browser
    if args.auth == 'oauth1':
        secrets = settings.load_secrets(
            ['CONSUMER_KEY', 'CONSUMER_SECRET'],
            {'CONSUMER_KEY': args.consumer_key, 'CONSUMER_SECRET': args.consumer_secret},
            interactive=interactive,
        )
        return OAuth1Authorizer(
            secrets['CONSUMER_KEY'],
            secrets['CONSUMER_SECRET'],
            access_token=args.access_token,
            access_secret=args.access_secret,
            browser=browser,
        )

    secrets = settings.load_secrets(
        ['CLIENT_ID', 'CLIENT_SECRET'],
        {'CLIENT_ID': args.client_id, 'CLIENT_SECRET': args.client_secret},
        interactive=interactive,
    )
    cache = TokenCache(args.cache_path)
    if args.auth == 'oauth2-callback':
        return OAuth2CallbackAuthorizer(
            secrets['CLIENT_ID'],
            secrets['CLIENT_SECRET'],
            cache=cache,
            redirect_uri=args.redirect_uri or settings.DEFAULT_REDIRECT_URI,
            browser=browser,
        )
    return OAuth2Authorizer(
        secrets['CLIENT_ID'],
        secrets['CLIENT_SECRET'],
        cache=cache,
        redirect_uri=args.redirect_uri,
        browser=browser,
    )


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        api = WeightApi(build_authorizer(args))
        count = run_backup(api)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 130
    except (FitbitWeightError, requests.RequestException) as e:
        logger.critical("%s", e)
        return 1

    logger.debug("Printed %d measurements", count)
    return 0
