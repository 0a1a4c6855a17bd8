"""
Issue a single use form link for an expediente.

The expediente must already exist in the record store. The script creates a
new token and prints the URL of the form page.

Usage:
    # Link valid for the configured default (LINK_TTL_HOURS)
    expediente-issue-link EXP-2024-001

    # Link valid for 24 hours, pointing at a public host
    expediente-issue-link EXP-2024-001 --ttl-hours 24 --base-url https://docs.example.com
"""

import argparse
import logging
import sys
from urllib.parse import urlencode

import config
from expediente.adapters import orm
from expediente.domain.commands import IssueAccessToken
from expediente.domain.model import ExpedienteNotFound
from expediente.service_layer import messagebus
from expediente.service_layer.unit_of_work import SqlAlchemyUnitOfWork

logger = logging.getLogger(__name__)


def issue_link(expediente_id: str, ttl_hours: int, base_url: str) -> str:
    """Issue a token for `expediente_id` and return the form URL."""
    orm.start_mappers()
    uow = SqlAlchemyUnitOfWork()
    [token] = messagebus.handle(IssueAccessToken(expediente_id=expediente_id, ttl_hours=ttl_hours), uow)
    return f"{base_url.rstrip('/')}/expediente?{urlencode({'token': token})}"


def main():
    """Main entry point."""
    logging.basicConfig(level=config.get_log_level())

    parser = argparse.ArgumentParser(
        description="Issue a single use form link for an expediente",
    )

    parser.add_argument(
        "expediente_id",
        help="Id (id_) of the expediente the link gives access to"
    )

    parser.add_argument(
        "--ttl-hours",
        type=int,
        default=config.get_link_ttl_hours(),
        help="Hours the link stays valid (default: LINK_TTL_HOURS or 72)"
    )

    parser.add_argument(
        "--base-url",
        type=str,
        default=config.get_api_url(),
        help="Base URL of the form service (default: API_HOST/API_PORT)"
    )

    args = parser.parse_args()

    if args.ttl_hours <= 0:
        parser.error("ttl-hours must be > 0")

    try:
        url = issue_link(args.expediente_id, args.ttl_hours, args.base_url)
    except ExpedienteNotFound as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)

    print(url)


if __name__ == "__main__":
    main()
