"""Command line entry point: run the server or sign a payload."""

import argparse
import logging
import sys

from gha_webhooks.config import load_settings
from gha_webhooks.signature import sign_payload

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def serve(args: argparse.Namespace) -> int:
    import uvicorn

    from gha_webhooks.server import create_app

    settings = load_settings(args.config)
    host = args.host or settings.host
    port = args.port or settings.port

    app = create_app(settings)
    logger.info(f"Listening for GitHub webhooks on {host}:{port}{settings.path}")
    uvicorn.run(app, host=host, port=port)
    return 0


def sign(args: argparse.Namespace) -> int:
    if args.file:
        with open(args.file, "rb") as f:
            body = f.read()
    else:
        body = sys.stdin.buffer.read()
    print(sign_payload(body, args.secret))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gha-webhooks",
        description="GitHub Actions webhook receiver",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the webhook server")
    serve_parser.add_argument("--config", default="config.yaml", help="Path to config file")
    serve_parser.add_argument("--host", type=str, default=None, help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: from config)")
    serve_parser.set_defaults(func=serve)

    sign_parser = subparsers.add_parser("sign", help="Print the X-Hub-Signature-256 value for a body")
    sign_parser.add_argument("--secret", required=True, help="Webhook secret")
    sign_parser.add_argument("file", nargs="?", default=None, help="Body file (default: stdin)")
    sign_parser.set_defaults(func=sign)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else logging.INFO)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
