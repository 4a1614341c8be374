from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from appgw.client import AzureCliClient
from appgw.errors import DeploymentError
from appgw.iac_types import DeploymentConfig, DeploymentPlan, StatusReport
from appgw.logs import setup_logging
from appgw.orchestrator import DEFAULT_TIMEOUT_MINUTES, DeploymentOrchestrator
from appgw.status import StatusReporter
from appgw.utils.azcli import CmdError
from appgw.utils.config_loader import ENVIRONMENTS, load_deployment_config

ACTIONS = {"deploy": "Deploy", "status": "Status"}


def _action(value: str) -> str:
    try:
        return ACTIONS[value.lower()]
    except KeyError:
        raise argparse.ArgumentTypeError(
            f"invalid action '{value}' (choose from {', '.join(ACTIONS.values())})"
        ) from None


def print_plan(plan: DeploymentPlan, console: Console) -> None:
    if plan.existing is not None:
        console.print(
            f"[yellow]Gateway already exists ({escape(plan.gateway_id)}); Deploy would make no changes.[/]"
        )
    console.print(f"[bold]Resolved request for[/] {escape(plan.gateway_id)}")
    console.print_json(json.dumps(plan.body))


def print_status(report: StatusReport, console: Console) -> None:
    summary = Table(title=f"Application Gateway {report.name}", show_header=False)
    summary.add_row("Resource group", report.resource_group)
    summary.add_row("Location", report.location)
    summary.add_row("Provisioning state", report.provisioning_state)
    summary.add_row("Operational state", report.operational_state)
    summary.add_row("Frontend IP", report.frontend_ip_address or "-")
    console.print(summary)

    for pool in report.backend_health:
        table = Table(
            title=f"Pool {pool.pool_name}: {pool.healthy_servers} healthy, {pool.unhealthy_servers} unhealthy"
        )
        table.add_column("Address")
        table.add_column("Health")
        table.add_column("HTTP setting")
        for server in pool.servers:
            style = "green" if server.health == "Healthy" else "red"
            table.add_row(escape(server.address), f"[{style}]{escape(server.health)}[/]", escape(server.http_setting))
        console.print(table)


def deploy(
    args: argparse.Namespace,
    config: DeploymentConfig,
    client: AzureCliClient,
    logger: logging.Logger,
    console: Console,
) -> None:
    orchestrator = DeploymentOrchestrator(client, logger)
    if args.preview:
        logger.info("Preview mode: the create call will not be issued")
        print_plan(orchestrator.plan(config), console)
        return
    result = orchestrator.deploy(config, timeout_minutes=args.timeout_minutes)
    logger.info(
        "Deploy finished: %s/%s in %s is %s",
        result.resource_group_name,
        result.name,
        result.location,
        result.provisioning_state,
    )


def status(
    args: argparse.Namespace,
    config: DeploymentConfig,
    client: AzureCliClient,
    logger: logging.Logger,
    console: Console,
) -> None:
    report = StatusReporter(client, logger).get_status(config)
    if report is None:
        logger.warning(
            "Application gateway '%s' does not exist in '%s'",
            config.application_gateway.name,
            config.resource_group.name,
        )
        return
    print_status(report, console)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="appgw-deployer", description="Deploy or inspect an Azure Application Gateway"
    )
    parser.add_argument("environment", choices=ENVIRONMENTS)
    parser.add_argument("action", type=_action, help="Deploy or Status")
    parser.add_argument("--config-dir", default="config", help="Directory holding <environment>.json")
    parser.add_argument("--log-dir", default="logs")
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Print the resolved gateway request without calling the create API",
    )
    parser.add_argument("--timeout-minutes", type=float, default=DEFAULT_TIMEOUT_MINUTES)
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    logger, log_file = setup_logging(
        log_dir=Path(args.log_dir),
        environment=args.environment,
        action=args.action,
        verbose=args.verbose,
    )
    handler = deploy if args.action == "Deploy" else status
    logger.info("%s started for environment '%s'", args.action, args.environment)
    try:
        config = load_deployment_config(
            config_dir=Path(args.config_dir), environment=args.environment, logger=logger
        )
        handler(args, config, AzureCliClient(), logger, console)
    except DeploymentError as ex:
        logger.error("%s failed: %s", args.action, ex)
        logger.debug("Traceback", exc_info=True)
        logger.info("See log file %s", log_file)
        return 1
    except CmdError as ex:
        logger.error("%s failed: az command error: %s", args.action, ex)
        logger.debug("Traceback", exc_info=True)
        logger.info("See log file %s", log_file)
        return 1
    except Exception:  # noqa: BLE001 - last boundary before exit code
        logger.exception("%s failed with an unexpected error", args.action)
        logger.info("See log file %s", log_file)
        return 1
    logger.info("%s completed; log file %s", args.action, log_file)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
