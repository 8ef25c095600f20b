"""
Command-line interface for graphkit.

Provides commands for one-off Graph API calls from a shell.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List

from graphkit import __version__
from graphkit.auth import StaticCredentialSource
from graphkit.client import GraphClient
from graphkit.config import GraphConfig, set_config
from graphkit.core.errors import GraphError
from graphkit.core.token_cache import TokenCache
from graphkit.log import setup_logging


def parse_params(pairs: List[str]) -> Dict[str, Any]:
    """Turn ``key=value`` arguments into a parameter mapping."""
    params: Dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Invalid parameter '{pair}', expected key=value")
        params[key] = value
    return params


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="graphkit",
        description="Resilient Graph API calls from the command line",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "endpoint",
        help="Endpoint below the version prefix (e.g. me/accounts)",
    )
    common.add_argument(
        "--token",
        help="Access token (default: GRAPH_ACCESS_TOKEN)",
    )
    common.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Request parameter, repeatable",
    )
    common.add_argument(
        "--api-version",
        help="Graph API version (default: config)",
    )
    common.add_argument(
        "--timeout-ms",
        type=int,
        help="Per-attempt timeout in milliseconds",
    )
    common.add_argument(
        "--retries",
        type=int,
        help="Retry attempts for transient failures",
    )
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: GRAPH_LOG_LEVEL)",
    )
    common.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Output logs in JSON format (default: GRAPH_LOG_JSON)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Call command
    call_parser = subparsers.add_parser("call", parents=[common], help="Make one request")
    call_parser.add_argument(
        "--method",
        default="GET",
        help="HTTP method (default: GET)",
    )

    # Collect command
    collect_parser = subparsers.add_parser(
        "collect",
        parents=[common],
        help="Fetch every item of a list edge",
    )
    collect_parser.add_argument(
        "--max-items",
        type=int,
        default=1000,
        help="Maximum number of items (default: 1000)",
    )

    return parser


async def run_command(args: argparse.Namespace, config: GraphConfig) -> Any:
    """Execute a parsed command and return its result."""
    token = args.token or config.access_token
    cache = TokenCache(source=StaticCredentialSource(token))
    options = {
        "version": args.api_version,
        "timeout_ms": args.timeout_ms,
        "retry_attempts": args.retries,
    }
    params = parse_params(args.param)

    async with GraphClient(config=config, token_cache=cache) as client:
        if args.command == "collect":
            return await client.collect(args.endpoint, params=params, max_items=args.max_items, **options)
        return await client.request(args.endpoint, method=args.method, params=params, **options)


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = GraphConfig()
    set_config(config)
    setup_logging(args.log_level, args.log_json, config)

    try:
        result = asyncio.run(run_command(args, config))
    except GraphError as e:
        print(json.dumps({"error": e.to_dict()}, indent=2), file=sys.stderr)
        sys.exit(2)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
