from __future__ import annotations

import argparse
import logging
import sys

import structlog

from .core.config import ManagementSettings
from .core.errors import ConfigError, ProtocolError
from .management.channel import ManagementChannel
from .protocol.middleware import AuthMiddleware
from .protocol.selfcheck import security_self_check
from .verifiers import StaticCredentialsVerifier, with_timeout

def _configure_logger(level: str = "info"):
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
    )
    return structlog.get_logger()

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OpenVPN management-interface client authentication")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check", help="Run security self-check")

    serve_parser = subparsers.add_parser("serve", help="Answer client-auth requests on a management socket")
    serve_parser.add_argument("--host", help="Management interface host (default 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, help="Management interface port (default 7505)")
    serve_parser.add_argument("--password", help="Management interface password")
    serve_parser.add_argument("--credentials", required=True, help="File of username:password lines")
    serve_parser.add_argument("--verify-timeout", type=float, help="Seconds before a credential check is abandoned")
    serve_parser.add_argument("--log-level", choices=["debug", "info", "warning", "error"])
    serve_parser.add_argument("--strict", action="store_true", default=None,
                              help="Stop on the first protocol sequencing error")
    return parser

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "check":
        logger = _configure_logger()
        try:
            security_self_check(logger)
        except RuntimeError as e:
            print(f"Error: {e}")
            return 1
        print("✓ Security self-check passed")
        return 0

    try:
        overrides = {
            "host": args.host,
            "port": args.port,
            "password": args.password,
            "verify_timeout_s": args.verify_timeout,
            "log_level": args.log_level,
            "strict": args.strict,
        }
        settings = ManagementSettings.load(**{
            **ManagementSettings.from_env().model_dump(),
            **{k: v for k, v in overrides.items() if v is not None},
        })
        logger = _configure_logger(settings.log_level)
        verifier = StaticCredentialsVerifier.from_file(args.credentials)
    except ConfigError as e:
        print(f"Error: {e}")
        return 2

    security_self_check(logger)
    logger.info("credentials_loaded", users=len(verifier))

    middleware = AuthMiddleware(with_timeout(verifier, settings.verify_timeout_s), logger=logger)

    try:
        channel = ManagementChannel.connect(settings, [middleware], logger=logger)
        channel.serve()
    except KeyboardInterrupt:
        logger.info("shutdown", reason="keyboard_interrupt")
        print("\nShutting down...")
    except ProtocolError as e:
        logger.error("protocol_error", error=str(e))
        print(f"Protocol error: {e}")
        return 3
    except Exception as e:
        logger.error("unexpected_error", error=str(e))
        print(f"Unexpected error: {e}")
        return 4

    return 0

if __name__ == "__main__":
    sys.exit(main())
