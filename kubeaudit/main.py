from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from .config import AuditConfig, load_config
from .errors import KubeAuditError
from .kube_client import SecureAPIClient
from .logging_config import configure_logging
from .roles import RunningBinariesProvider, find_running_binaries, has_role
from .schemas import FilterOpts
from .selection import compile_filter
from .version import VersionResolver, map_to_benchmark_version

LOG = logging.getLogger("kubeaudit")


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubeaudit",
        description="Resolve the cluster version, node roles and check selection for a benchmark run.",
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config",
        default=os.getenv("KUBEAUDIT_CONFIG"),
        help="YAML config file (default: KUBEAUDIT_CONFIG or the bundled cfg/config.yaml)",
    )
    parser.add_argument(
        "--version",
        dest="kube_version",
        help="Kubernetes version to assume, e.g. 1.15; skips the API lookup",
    )
    parser.add_argument(
        "--benchmark",
        help="Benchmark id to run, e.g. cis-1.4; skips the version mapping",
    )
    parser.add_argument(
        "--scored",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run the scored checks (default on)",
    )
    parser.add_argument(
        "--unscored",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run the unscored checks (default on)",
    )
    parser.add_argument("--group", default="", help="Comma-separated list of group ids to run")
    parser.add_argument("--check", default="", help="Comma-separated list of check ids to run")
    parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        help="Role to detect; may be repeated (default: every configured role)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=os.getenv("KUBEAUDIT_LOG_LEVEL", "INFO"),
        help="Log level, default INFO",
    )
    return parser


def resolve_benchmark(config: AuditConfig, kube_version: Optional[str], benchmark: Optional[str]) -> Dict[str, str]:
    if not kube_version:
        resolver = VersionResolver(
            credentials_dir=config.credentials_dir,
            version_url=config.version_url,
            client=SecureAPIClient(timeout=config.request_timeout),
        )
        kube_version = resolver.resolve()
    if not benchmark:
        benchmark = map_to_benchmark_version(config.version_rules, kube_version)
    LOG.info("Using benchmark %s for Kubernetes %s", benchmark, kube_version)
    return {"kube_version": kube_version, "benchmark": benchmark}


def detect_roles(
    config: AuditConfig,
    role_names: Optional[List[str]] = None,
    provider: RunningBinariesProvider = find_running_binaries,
) -> Dict[str, bool]:
    names = role_names or sorted(config.roles)
    return {name: has_role(name, config.roles, provider) for name in names}


def build_plan(args: argparse.Namespace, provider: RunningBinariesProvider = find_running_binaries) -> Dict[str, Any]:
    config = load_config(args.config)
    opts = FilterOpts(
        scored=args.scored,
        unscored=args.unscored,
        group_list=args.group,
        check_list=args.check,
    )
    # Raises before any lookup when the options conflict; checks are not loaded here.
    compile_filter(opts)

    plan: Dict[str, Any] = resolve_benchmark(config, args.kube_version, args.benchmark)
    plan["roles"] = detect_roles(config, args.roles, provider)
    plan["filter"] = opts.summary()
    return plan


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        plan = build_plan(args)
    except KubeAuditError as exc:
        LOG.error("%s", exc)
        return 1

    json.dump(plan, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
