"""CLI entry point for sms-assistant."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sms_assistant.config import AppConfig, load_config
from sms_assistant.log import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="sms-assistant",
        description="SMS auto-responder backed by Gemini with optional web search",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("start", "Start the webhook server"),
        ("config-check", "Validate configuration"),
        ("model-info", "Show generation and search settings"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
        sub.add_argument("-e", "--env", default=".env", help="Path to .env file")
        if name == "start":
            sub.add_argument("--host", default=None, help="Override server.host")
            sub.add_argument("--port", type=int, default=None, help="Override server.port")

    args = parser.parse_args()

    if args.command is None:
        # Default to start
        args.command = "start"
        args.config = "config.yaml"
        args.env = ".env"
        args.host = None
        args.port = None

    if args.command == "config-check":
        _check_config(args.config, args.env)
    elif args.command == "model-info":
        _model_info(args.config, args.env)
    elif args.command == "start":
        _run(args.config, args.env, args.host, args.port)


def _load(config_path: str, env_path: str) -> AppConfig:
    """Load the YAML config, or fall back to environment variables when the file is absent."""
    if not Path(config_path).exists():
        from dotenv import load_dotenv

        if Path(env_path).exists():
            load_dotenv(env_path)
        return AppConfig.from_env()
    return load_config(config_path, env_path)


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    try:
        config = _load(config_path, env_path)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    from sms_assistant.core.allowlist import parse_allowlist

    allowed = parse_allowlist(config.allowlist.allowed_from_numbers)
    print(f"Configuration valid: {config_path}")
    print(f"  Webhook: {config.server.host}:{config.server.port}{config.server.webhook_path}")
    print(f"  Allowlist: {len(allowed)} number(s)" if allowed else "  Allowlist: (open, all senders allowed)")
    print(f"  Rate limit: {config.rate_limit.capacity} per {config.rate_limit.refill_window_ms} ms")
    if config.history.enabled:
        print(f"  History: {config.history.backend} ({config.history.db_path}), ttl {config.history.ttl_days}d")
    else:
        print("  History: disabled")
    print(f"  Gemini key set: {bool(config.gemini.api_key)}")
    print(f"  Max reply length: {config.response.max_length}")


def _model_info(config_path: str, env_path: str) -> None:
    """Show generation and search configuration."""
    try:
        config = _load(config_path, env_path)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    print("AI Model Configuration")
    print("=" * 50)
    print(f"  Model   : {config.gemini.model}")
    print(f"  Endpoint: {config.gemini.base_url}")
    print(f"  Timeout : {config.gemini.timeout}s")
    search = config.search
    if search.enabled:
        creds = "set" if search.api_key and search.engine_id else "missing"
        print(f"  Search  : web_search ({search.result_count} results, credentials {creds})")
    else:
        print("  Search  : (disabled)")
    print()


def _run(config_path: str, env_path: str, host: str | None, port: int | None) -> None:
    """Load config and serve the webhook."""
    try:
        config = _load(config_path, env_path)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level, config.log_format)

    import uvicorn

    from sms_assistant.app import SmsAssistantApp
    from sms_assistant.messenger.webhook import create_app

    app = create_app(SmsAssistantApp(config))
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
