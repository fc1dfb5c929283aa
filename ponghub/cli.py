"""Command line entry point: check services, update the log, write the report."""

import argparse
import logging
import re
import sys

from ponghub.checker import UnsupportedMethodError, check_services
from ponghub.config import ConfigError, load_config
from ponghub.defaults import CONFIG_PATH, LOG_PATH, REPORT_PATH
from ponghub.report import DEFAULT_TEMPLATE_PATH, ReportError, generate_report
from ponghub.result import LogError, output_results

logger = logging.getLogger("ponghub")


def _parser():
    parser = argparse.ArgumentParser(
        prog="ponghub", description="Check service endpoints and publish a status report."
    )
    parser.add_argument("--config", default=CONFIG_PATH, help="configuration file")
    parser.add_argument("--log", default=LOG_PATH, help="JSON log file")
    parser.add_argument("--report", default=REPORT_PATH, help="HTML report file")
    parser.add_argument("--template", default=DEFAULT_TEMPLATE_PATH, help="report template")
    return parser


def main(argv=None):
    """Run one round of checks; return the process exit status."""
    args = _parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    try:
        config = load_config(args.config)
    except (OSError, ConfigError) as exc:
        logger.error("Error loading config at %s : %s", args.config, exc)
        return 1

    try:
        results = check_services(config)
    except (UnsupportedMethodError, re.error) as exc:
        logger.error("Error checking services: %s", exc)
        return 1

    try:
        output_results(results, config.max_log_days, args.log)
    except LogError as exc:
        logger.error("Error outputting results: %s", exc)
        return 1

    try:
        generate_report(args.log, args.report, args.template)
    except ReportError as exc:
        logger.error("Error generating report: %s", exc)
        return 1
    logger.info("Report generated at %s", args.report)
    return 0


if __name__ == "__main__":
    sys.exit(main())