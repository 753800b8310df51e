"""
Mint an admin bearer token for the admin API.

    python admin_token.py admin@pizza.example

The email must be listed in ADMIN_EMAILS and ADMIN_JWT_SECRET must be set,
otherwise the token would be rejected by the API anyway.
"""
import argparse
import logging
import sys

import config
from auth import issue_admin_token

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Issue an admin token for the Pizza Unlimited API")
    parser.add_argument("email", help="admin email, must be listed in ADMIN_EMAILS")
    args = parser.parse_args(argv)

    email = args.email.strip()
    if not config.ADMIN_JWT_SECRET:
        logger.error("ADMIN_JWT_SECRET is not configured")
        return 1
    if email not in config.ADMIN_EMAILS:
        logger.error("%s is not listed in ADMIN_EMAILS", email)
        return 1

    print(issue_admin_token(email))
    logger.info("Issued admin token for %s, valid %d day(s)", email, config.ADMIN_TOKEN_TTL_DAYS)
    return 0


if __name__ == "__main__":
    config.configure_logging()
    sys.exit(main())
