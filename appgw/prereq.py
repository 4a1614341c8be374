"""
Prerequisite checks.

Validates local tooling, Azure session connectivity and the shape of each
environment's config file without touching any cloud resource. The overall
outcome is the worst individual outcome: Pass and Warning exit 0, Fail
exits 1.
"""

from __future__ import annotations

import argparse
import shutil
import sys
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from appgw.client import AzureCliClient
from appgw.errors import ConfigError
from appgw.utils.azcli import CmdError, az_json
from appgw.utils.config_loader import (
    ENVIRONMENTS,
    config_path,
    missing_required_keys,
    parse_deployment_config,
    read_config_document,
)
from appgw.utils.validation import format_missing_keys_message

MIN_PYTHON = (3, 9)
RECOMMENDED_SECTIONS = [
    "FrontendPort",
    "BackendAddressPools",
    "BackendHttpSettings",
    "HttpListeners",
    "RequestRoutingRules",
]


class Outcome(Enum):
    PASS = "Pass"
    WARNING = "Warning"
    FAIL = "Fail"


_SEVERITY = {Outcome.PASS: 0, Outcome.WARNING: 1, Outcome.FAIL: 2}


@dataclass(frozen=True)
class CheckResult:
    name: str
    outcome: Outcome
    detail: str


def check_python(version_info: Tuple[int, ...] = tuple(sys.version_info)) -> CheckResult:
    found = ".".join(str(p) for p in version_info[:3])
    if tuple(version_info[:2]) < MIN_PYTHON:
        return CheckResult("Python", Outcome.FAIL, f"Python {found} found; 3.9+ required")
    return CheckResult("Python", Outcome.PASS, f"Python {found}")


def check_az_cli(which: Callable[[str], Optional[str]] = shutil.which) -> CheckResult:
    name = "az.cmd" if sys.platform.startswith("win") else "az"
    path = which(name)
    if not path:
        return CheckResult("Azure CLI", Outcome.FAIL, "az not found on PATH")
    return CheckResult("Azure CLI", Outcome.PASS, path)


def check_az_version(query: Callable[[List[str]], Any] = az_json) -> CheckResult:
    try:
        versions = query(["version"]) or {}
    except CmdError as ex:
        return CheckResult("Azure CLI version", Outcome.WARNING, f"az version failed: {ex}")
    version = versions.get("azure-cli")
    if not version:
        return CheckResult("Azure CLI version", Outcome.WARNING, "azure-cli version not reported")
    return CheckResult("Azure CLI version", Outcome.PASS, f"azure-cli {version}")


def check_session(client: Any) -> CheckResult:
    account = client.get_session()
    if not account:
        return CheckResult("Azure session", Outcome.FAIL, "No active session; run 'az login'")
    return CheckResult(
        "Azure session", Outcome.PASS, f"{account.get('name', '?')} ({account['id']})"
    )


def check_log_dir(log_dir: Path) -> CheckResult:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryFile(dir=log_dir):
            pass
    except OSError as ex:
        return CheckResult("Log directory", Outcome.WARNING, f"{log_dir} is not writable: {ex}")
    return CheckResult("Log directory", Outcome.PASS, str(log_dir))


def check_config_file(config_dir: Path, environment: str) -> CheckResult:
    name = f"Config ({environment})"
    path = config_path(config_dir, environment)
    try:
        document = read_config_document(path)
    except ConfigError as ex:
        return CheckResult(name, Outcome.FAIL, str(ex))

    missing = missing_required_keys(document)
    if missing:
        return CheckResult(name, Outcome.FAIL, format_missing_keys_message(missing, str(path)))

    try:
        parse_deployment_config(document)
    except ConfigError as ex:
        return CheckResult(name, Outcome.FAIL, str(ex))

    warnings = []
    tag = str(document.get("Environment"))
    if tag.lower() != environment.lower():
        warnings.append(f"Environment tag '{tag}' does not match '{environment}'")
    absent = [s for s in RECOMMENDED_SECTIONS if not document.get(s)]
    if absent:
        warnings.append("no " + ", ".join(absent))
    if warnings:
        return CheckResult(name, Outcome.WARNING, "; ".join(warnings))
    return CheckResult(name, Outcome.PASS, str(path))


def overall(results: Sequence[CheckResult]) -> Outcome:
    worst = Outcome.PASS
    for r in results:
        if _SEVERITY[r.outcome] > _SEVERITY[worst]:
            worst = r.outcome
    return worst


def run_checks(
    *,
    config_dir: Path,
    log_dir: Path,
    environments: Sequence[str],
    client: Any,
    which: Callable[[str], Optional[str]] = shutil.which,
    query: Callable[[List[str]], Any] = az_json,
) -> List[CheckResult]:
    results = [check_python()]
    az_result = check_az_cli(which)
    results.append(az_result)
    if az_result.outcome is Outcome.PASS:
        results.append(check_az_version(query))
        results.append(check_session(client))
    results.append(check_log_dir(log_dir))
    results.extend(check_config_file(config_dir, env) for env in environments)
    return results


def print_results(results: Sequence[CheckResult], console: Console) -> None:
    colors = {Outcome.PASS: "green", Outcome.WARNING: "yellow", Outcome.FAIL: "red"}
    table = Table(title="Prerequisite checks")
    table.add_column("Check")
    table.add_column("Result")
    table.add_column("Detail")
    for r in results:
        color = colors[r.outcome]
        table.add_row(r.name, f"[{color}]{r.outcome.value}[/]", escape(r.detail))
    console.print(table)
    result = overall(results)
    console.print(f"Overall: [{colors[result]}]{result.value}[/]")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="appgw-prereq", description="Check prerequisites for appgw-deployer"
    )
    parser.add_argument(
        "--environment",
        choices=ENVIRONMENTS,
        action="append",
        help="Environment config to check (repeatable; default: all)",
    )
    parser.add_argument("--config-dir", default="config")
    parser.add_argument("--log-dir", default="logs")
    args = parser.parse_args(argv)

    results = run_checks(
        config_dir=Path(args.config_dir),
        log_dir=Path(args.log_dir),
        environments=args.environment or ENVIRONMENTS,
        client=AzureCliClient(),
    )
    print_results(results, Console())
    return 1 if overall(results) is Outcome.FAIL else 0


if __name__ == "__main__":
    raise SystemExit(main())
