"""CLI entry point that rebuilds saved filters from backup CSV files."""
from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import List

from jira_filter_restore.backup import load_filters, load_permissions
from jira_filter_restore.config import EXISTENCE_POLICIES, AppConfig, load_config
from jira_filter_restore.http_client import JiraHTTPClient
from jira_filter_restore.jira_api import JiraAPI
from jira_filter_restore.logging_setup import configure_logging
from jira_filter_restore.report import RestoreResult, ResultWriter
from jira_filter_restore.restore import FilterRestorer

LOGGER = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Restore Jira filters and their permissions from backup CSV files")
    parser.add_argument("--config", help="Optional YAML configuration file")
    parser.add_argument("--scheme", choices=("http", "https"), help="Protocol used to reach Jira")
    parser.add_argument("--host", help="Jira host, e.g. example.atlassian.net")
    parser.add_argument("--user", help="Account email used for basic authentication")
    parser.add_argument("--token", help="API token; read from JIRA_API_TOKEN or prompted for when omitted")
    parser.add_argument("--filters", required=True, help="Backup CSV with id,name,jql,owner columns")
    parser.add_argument("--permissions", required=True, help="Backup CSV with id,type,rights,param1,param2 columns")
    parser.add_argument("--output", default="out/restore_results.csv", help="Destination CSV for per-filter results")
    parser.add_argument("--log-file", help="Also write the run log to this file")
    parser.add_argument("--existence-policy", choices=EXISTENCE_POLICIES, help="How many same-name filters count as existing")
    parser.add_argument(
        "--dedupe-dependencies",
        action="store_true",
        default=None,
        help="Check each referenced filter only once per JQL query",
    )
    parser.add_argument("--pause-filters", action="store_true", default=None, help="Wait for Enter between filters")
    parser.add_argument("--pause-actions", action="store_true", default=None, help="Wait for Enter before every change")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def build_config(args: argparse.Namespace) -> AppConfig:
    return load_config(
        args.config,
        overrides={
            "scheme": args.scheme,
            "host": args.host,
            "user": args.user,
            "token": args.token,
            "existence_policy": args.existence_policy,
            "dedupe_dependencies": args.dedupe_dependencies,
            "pause_between_filters": args.pause_filters,
            "pause_between_actions": args.pause_actions,
        },
    )


def run_restore(config: AppConfig, *, filters_path: Path, permissions_path: Path, output_path: Path) -> List[RestoreResult]:
    # Read both files before touching Jira so format errors fail fast.
    filters = load_filters(filters_path)
    permissions = load_permissions(permissions_path)

    user = config.jira.get_user()
    token = config.jira.get_token()
    with JiraHTTPClient(
        base_url=config.jira.base_url,
        user=user,
        token=token,
        ca_bundle=config.jira.ca_bundle,
        timeout=config.jira.timeout_s,
    ) as client:
        api = JiraAPI(client, page_size=config.jira.page_size)
        myself = api.get_myself()
        LOGGER.info("Connected to %s as %s", config.jira.base_url, myself.get("displayName", user))
        restorer = FilterRestorer(api, config.restore)
        with ResultWriter(output_path) as writer:
            results = restorer.restore_all(filters, permissions, writer)

    summary = Counter(result.outcome.value for result in results)
    LOGGER.info("Processed %s filters: %s", len(results), dict(summary))
    LOGGER.info("Results written to %s", output_path)
    return results


def main() -> None:
    args = parse_args()
    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)
    config = build_config(args)
    results = run_restore(
        config,
        filters_path=Path(args.filters),
        permissions_path=Path(args.permissions),
        output_path=Path(args.output),
    )
    if any(result.failed for result in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
