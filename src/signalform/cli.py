"""
Command-line entry point: one lifecycle operation per invocation.

The host runtime (or an operator) owns planning and diffing; this shim only
resolves credentials, decodes the declared config, runs the requested
operation and writes the computed state back.

Usage (examples):
  - Create a detector and record its state:
      signalform create --kind signalform_detector --config cpu.yml --state cpu.state.json

  - Refresh (drift check):
      signalform read --kind signalform_detector --config cpu.yml --state cpu.state.json

  - Validate a config without touching the network:
      signalform validate --kind signalform_time_chart --config chart.yml
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import yaml

from .core.config import ConfigError, load_provider_config
from .core.lifecycle import LifecycleError, ResourceLifecycle, ResourceState
from .core.logging_utils import get_logger, setup_logging
from .core.sfx_client import SignalFxClient, TransportError
from .resources.registry import get_spec, iter_specs
from .utils.reporting import print_rows, state_row
from .utils.validators import ValidationError

EXIT_OK = 0
EXIT_GENERIC_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_VALIDATION_ERROR = 3
EXIT_NETWORK_ERROR = 4
EXIT_API_ERROR = 5

LIFECYCLE_OPS = ("create", "read", "update", "delete")

log = get_logger(__name__)


def _load_yaml(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if not isinstance(data, dict):
        raise ValidationError([f"{path}: top level must be a mapping of resource fields"])
    return data


def _load_state(path: Optional[str]) -> Optional[ResourceState]:
    if not path:
        return None
    p = Path(path)
    if not p.is_file():
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError([f"{path}: invalid state file: {exc}"]) from exc
    if not isinstance(data, dict) or "name" not in data:
        raise ValidationError([f"{path}: state file must be a JSON object with a 'name'"])
    try:
        return ResourceState.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise ValidationError([f"{path}: invalid state file: {exc}"]) from exc


def _save_state(path: Optional[str], state: ResourceState) -> None:
    if not path:
        return
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(state.to_dict(), indent=2) + "\n", encoding="utf-8")
    log.debug("State written to %s", p)


def cmd_kinds(args: argparse.Namespace) -> int:
    rows = [{"kind": spec.key, "help": spec.help} for spec in iter_specs()]
    if args.format == "json":
        print(json.dumps(rows, indent=2))
    else:
        width = max(len(r["kind"]) for r in rows)
        for r in rows:
            print(f"{r['kind'].ljust(width)}  {r['help']}")
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    """Decode + validate only; no credentials and no network."""
    try:
        spec = get_spec(args.kind)
        resource_cls = spec.load_class()
        cfg = resource_cls.parse_config(_load_yaml(args.config))
    except (KeyError, FileNotFoundError, yaml.YAMLError) as exc:
        log.error("Validation error: %s", exc)
        return EXIT_VALIDATION_ERROR
    except ValidationError as exc:
        for msg in exc.errors:
            log.error("Validation error: %s", msg)
        return EXIT_VALIDATION_ERROR
    log.info("%s %r is valid", args.kind, cfg.name)
    return EXIT_OK


def cmd_lifecycle(args: argparse.Namespace) -> int:
    """Run one of create/read/update/delete for a single declared resource."""
    op = args.command
    state: Optional[ResourceState] = None
    try:
        spec = get_spec(args.kind)
        resource_cls = spec.load_class()
        cfg = resource_cls.parse_config(_load_yaml(args.config))

        provider = load_provider_config(args.auth_token, api_url=args.api_url, app_url=args.app_url)
        lifecycle = ResourceLifecycle(SignalFxClient(timeout_sec=args.timeout_sec), provider.auth_token)
        resource = resource_cls(provider, lifecycle)

        state = _load_state(args.state)
        if op == "create":
            new_state = resource.create(cfg, state)
        else:
            new_state = getattr(resource, op)(cfg, state or resource.bind_state(cfg))

        _save_state(args.state, new_state)
        status = "Success"
        if cfg.synced and not new_state.synced:
            # declared synced=true against observed drift: the host should re-apply
            log.warning("%s %r drifted remotely; run update to resolve", args.kind, cfg.name)
            status = "Needs update"
        print_rows([state_row(args.kind, op, new_state, status=status)], args.format)
        return EXIT_OK

    except ConfigError as exc:
        log.error("Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR
    except (KeyError, FileNotFoundError, yaml.YAMLError) as exc:
        log.error("Validation error: %s", exc)
        return EXIT_VALIDATION_ERROR
    except ValidationError as exc:
        for msg in exc.errors:
            log.error("Validation error: %s", msg)
        return EXIT_VALIDATION_ERROR
    except (TransportError, requests.RequestException) as exc:
        log.error("Network/HTTP error: %s", exc)
        _report_failure(args, op, state, exc)
        return EXIT_NETWORK_ERROR
    except LifecycleError as exc:
        log.error("SignalFx error: %s", exc)
        _report_failure(args, op, state, exc)
        return EXIT_API_ERROR


def _report_failure(args: argparse.Namespace, op: str, state: Optional[ResourceState], exc: Exception) -> None:
    if state is None:
        return
    print_rows([state_row(args.kind, op, state, status="Failed", error=str(exc))], args.format)


# ---------------------------- Argument parser -------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="signalform", description="SignalFx resources as declared state")
    parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")
    parser.add_argument("--log-level", default=None, help="Root log level floor (default from SIGNALFORM_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    kinds = subparsers.add_parser("kinds", help="List resource kinds")
    kinds.set_defaults(func=cmd_kinds)

    val = subparsers.add_parser("validate", help="Validate a declared resource config (no network)")
    val.add_argument("--kind", required=True, help="Resource kind, e.g. signalform_detector")
    val.add_argument("--config", required=True, help="YAML file with the resource fields")
    val.set_defaults(func=cmd_validate)

    for op in LIFECYCLE_OPS:
        sp = subparsers.add_parser(op, help=f"{op.capitalize()} one resource")
        sp.add_argument("--kind", required=True, help="Resource kind, e.g. signalform_detector")
        sp.add_argument("--config", required=True, help="YAML file with the resource fields")
        sp.add_argument("--state", help="JSON state file (read before, written after the operation)")
        sp.add_argument("--auth-token", default=None, help="SignalFx token (overrides files, netrc and SFX_AUTH_TOKEN)")
        sp.add_argument("--api-url", default=None, help="API base URL (default https://api.signalfx.com/v2)")
        sp.add_argument("--app-url", default=None, help="UI base URL for derived urls")
        sp.add_argument("--timeout-sec", type=float, default=None, help="HTTP timeout (default: none)")
        sp.set_defaults(func=cmd_lifecycle)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, kind=getattr(args, "kind", None), action=args.command)
    try:
        return args.func(args)
    except Exception as exc:  # pragma: no cover
        log.error("Unexpected error: %s", exc, exc_info=True)
        return EXIT_GENERIC_ERROR


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
