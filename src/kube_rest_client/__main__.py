"""Command-line entry point: get, list, delete, watch and logs against one cluster."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

import structlog

from kube_rest_client.client import KubernetesClient
from kube_rest_client.config import load_client_config
from kube_rest_client.errors import ClientError
from kube_rest_client.logging_config import configure_logging
from kube_rest_client.models import encode_watch_event
from kube_rest_client.resources import BUILTIN_RESOURCES, ApiResource, lookup_resource

log = structlog.get_logger()


def _resource_arg(value: str) -> ApiResource:
    try:
        return lookup_resource(value)
    except KeyError:
        choices = ", ".join(sorted(BUILTIN_RESOURCES))
        raise argparse.ArgumentTypeError(f"unknown resource {value!r} (choose from {choices})") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kube-rest-client",
        description="Minimal Kubernetes API client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List pods in the service account's namespace
  python -m kube_rest_client list pods

  # Watch deployments across all namespaces
  python -m kube_rest_client watch deployments --all-namespaces

  # Last 20 log lines of a pod
  python -m kube_rest_client logs my-pod --tail 20
        """,
    )
    parser.add_argument("--config", help="YAML client configuration file (default: $KUBE_CLIENT_CONFIG)")
    parser.add_argument("-n", "--namespace", help="Namespace (default: the client's default namespace)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["text", "json"],
        help="Log output format (default: text on a terminal, json otherwise)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    get = sub.add_parser("get", help="Fetch one resource")
    get.add_argument("resource", type=_resource_arg)
    get.add_argument("name")

    list_ = sub.add_parser("list", help="List resources")
    list_.add_argument("resource", type=_resource_arg)
    list_.add_argument("-l", "--selector", help="Label selector")
    list_.add_argument("-A", "--all-namespaces", action="store_true")

    delete = sub.add_parser("delete", help="Delete one resource")
    delete.add_argument("resource", type=_resource_arg)
    delete.add_argument("name")
    delete.add_argument("--grace-period", type=int, default=30, help="Grace period in seconds (default: 30)")
    delete.add_argument("--cascade", choices=["Foreground", "Background", "Orphan"], help="Propagation policy")

    watch = sub.add_parser("watch", help="Stream change events as JSON lines")
    watch.add_argument("resource", type=_resource_arg)
    watch.add_argument("-l", "--selector", help="Label selector")
    watch.add_argument("-A", "--all-namespaces", action="store_true")
    watch.add_argument("--resource-version", help="Start watching after this resourceVersion")
    watch.add_argument("--timeout", type=int, help="Server-side watch timeout in seconds")

    logs = sub.add_parser("logs", help="Print pod logs")
    logs.add_argument("name", help="Pod name")
    logs.add_argument("-c", "--container")
    logs.add_argument("-f", "--follow", action="store_true")
    logs.add_argument("-p", "--previous", action="store_true")
    logs.add_argument("--since", type=int, help="Only lines newer than this many seconds")
    logs.add_argument("--tail", type=int, help="Only the last N lines")
    logs.add_argument("--timestamps", action="store_true")

    return parser


def _print_json(data: str) -> None:
    print(json.dumps(json.loads(data), indent=2))


async def run(args: argparse.Namespace) -> int:
    config = load_client_config(args.config)
    async with KubernetesClient(config) as client:
        if args.command == "get":
            obj = await client.get_resource(args.resource, args.name, args.namespace)
            _print_json(obj.model_dump_json(by_alias=True, exclude_none=True))
        elif args.command == "list":
            items = await client.list_resources(
                args.resource, args.namespace, all_namespaces=args.all_namespaces, label_selector=args.selector
            )
            for item in items.items:
                meta = item.metadata
                print(f"{meta.namespace or '-'}\t{meta.name}")
        elif args.command == "delete":
            status = await client.delete_resource(
                args.resource,
                args.name,
                args.namespace,
                grace_period_seconds=args.grace_period,
                propagation_policy=args.cascade,
            )
            print(status.status or "Success")
        elif args.command == "watch":
            stream = client.watch_resources(
                args.resource,
                args.namespace,
                all_namespaces=args.all_namespaces,
                label_selector=args.selector,
                resource_version=args.resource_version,
                timeout_seconds=args.timeout,
            )
            async with stream:
                async for event in stream:
                    print(encode_watch_event(event), flush=True)
        elif args.command == "logs":
            stream = client.pod_logs(
                args.name,
                args.namespace,
                container=args.container,
                follow=args.follow,
                previous=args.previous,
                since_seconds=args.since,
                tail_lines=args.tail,
                timestamps=args.timestamps,
            )
            async with stream:
                async for line in stream:
                    print(line, flush=True)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    json_output = None if args.log_format is None else args.log_format == "json"
    configure_logging(args.log_level, json_output)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130
    except ClientError as e:
        log.error("command_failed", command=args.command, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
