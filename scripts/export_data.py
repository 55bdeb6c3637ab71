"""Export users, projects, boards, roles or filter backups from Jira to CSV."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from jira_filter_restore.config import load_config
from jira_filter_restore.export import EXPORTERS, export_filters
from jira_filter_restore.http_client import JiraHTTPClient
from jira_filter_restore.jira_api import JiraAPI
from jira_filter_restore.logging_setup import configure_logging

LOGGER = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export Jira data to CSV")
    parser.add_argument("collection", choices=sorted([*EXPORTERS, "filters"]), help="What to export")
    parser.add_argument("--config", help="Optional YAML configuration file")
    parser.add_argument("--scheme", choices=("http", "https"), help="Protocol used to reach Jira")
    parser.add_argument("--host", help="Jira host, e.g. example.atlassian.net")
    parser.add_argument("--user", help="Account email used for basic authentication")
    parser.add_argument("--token", help="API token; read from JIRA_API_TOKEN or prompted for when omitted")
    parser.add_argument("--output", help="Destination CSV (defaults to out/<collection>.csv)")
    parser.add_argument(
        "--permissions-output",
        default="out/filter_permissions.csv",
        help="Destination CSV for filter permissions when exporting filters",
    )
    parser.add_argument("--name", help="Only export filters whose name contains this text")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(level=logging.INFO)
    config = load_config(
        args.config,
        overrides={"scheme": args.scheme, "host": args.host, "user": args.user, "token": args.token},
    )
    output = Path(args.output or f"out/{args.collection}.csv")
    user = config.jira.get_user()
    with JiraHTTPClient(
        base_url=config.jira.base_url,
        user=user,
        token=config.jira.get_token(),
        ca_bundle=config.jira.ca_bundle,
        timeout=config.jira.timeout_s,
    ) as client:
        api = JiraAPI(client, page_size=config.jira.page_size)
        api.get_myself()
        if args.collection == "filters":
            filters, permissions = export_filters(api, output, Path(args.permissions_output), name=args.name)
            LOGGER.info("Exported %s filters and %s permission rows", filters, permissions)
        else:
            count = EXPORTERS[args.collection](api, output)
            LOGGER.info("Exported %s %s", count, args.collection)


if __name__ == "__main__":
    main()
