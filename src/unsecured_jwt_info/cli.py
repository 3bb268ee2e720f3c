"""unsecured-jwt-info CLI: build the verifier config from flags and serve it."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

import structlog

from .config import DEFAULT_CERTS_TIMEOUT, DEFAULT_CLOCK_SKEW, VerifierConfig, parse_host_aliases
from .flask_extension import create_app
from .logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unsecured-jwt-info",
        description="Verify unsigned JWT bearer tokens against subject/algorithm allow-lists.",
    )
    parser.add_argument(
        "--allowed-subject",
        "--claim-sub",
        dest="allowed_subjects",
        action="append",
        default=[],
        metavar="SUB",
        help="Allowed subject claim (user name). Repeatable; none means any subject.",
    )
    parser.add_argument(
        "--allowed-algorithm",
        "--algorithm",
        dest="allowed_algorithms",
        action="append",
        default=[],
        metavar="ALG",
        help="Allowed header algorithm. Repeatable; none means any algorithm.",
    )
    parser.add_argument(
        "--clock-skew",
        type=int,
        default=DEFAULT_CLOCK_SKEW,
        help="Tolerance in seconds for iat/exp (default: %(default)s)",
    )
    parser.add_argument(
        "--host-alias",
        dest="host_aliases",
        action="append",
        default=[],
        metavar="HOST=ALIAS",
        help='Rewrite an issuer host before fetching certs (e.g. "localhost=host.docker.internal")',
    )
    parser.add_argument(
        "--certs-timeout",
        type=float,
        default=DEFAULT_CERTS_TIMEOUT,
        help="Timeout in seconds for the issuer certs request (default: %(default)s)",
    )
    parser.add_argument(
        "--no-resolve-keys",
        dest="resolve_keys",
        action="store_false",
        help="Skip the issuer certificate lookup",
    )
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    return parser


def build_config(args: argparse.Namespace) -> VerifierConfig:
    """Turn parsed flags into a VerifierConfig.

    Raises:
        ValueError: On a malformed host alias or out-of-range number.
    """
    return VerifierConfig(
        allowed_subjects=frozenset(args.allowed_subjects),
        allowed_algorithms=frozenset(args.allowed_algorithms),
        clock_skew=args.clock_skew,
        host_aliases=parse_host_aliases(args.host_aliases),
        certs_timeout=args.certs_timeout,
        resolve_keys=args.resolve_keys,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the ``unsecured-jwt-info`` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    configure_logging(level=args.log_level, json_logs=args.json_logs)
    structlog.get_logger(__name__).info(
        "starting",
        allowed_subjects=sorted(config.allowed_subjects),
        allowed_algorithms=sorted(config.allowed_algorithms),
        clock_skew=config.clock_skew,
        host_aliases=dict(config.host_aliases),
    )

    create_app(config).run(host=args.host, port=args.port)
