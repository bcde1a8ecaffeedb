import argparse
import asyncio
import dataclasses
import logging
import signal
import sys
from pathlib import Path

import claimbot.display as display
from claimbot.config import BotConfig, load_config
from claimbot.errors import ConfigError
from claimbot.logging_config import setup_logging
from claimbot.orchestrator import build_orchestrator, load_accounts
from claimbot.rpc import ChainClient

log = logging.getLogger("claimbot.cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="claimbot", description="Diggers World claim bot")
    parser.add_argument("-c", "--config", type=Path, help="Path to a TOML config file (merged over the defaults).")
    parser.add_argument("--log-level", help="Override LOG_LEVEL.")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Run the scheduler in the foreground (default).")
    run.add_argument("--once", action="store_true", help="Run a single pass and exit.")
    run.add_argument("--dev", action="store_true", help="Read only; never submit transactions.")

    serve = sub.add_parser("serve", help="Run the scheduler behind a status API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--dev", action="store_true", help="Read only; never submit transactions.")

    sub.add_parser("check-keys", help="Validate configured keys and print their public keys.")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "run"
        args.once = False
        args.dev = False
    return args


async def _run(config: BotConfig, *, once: bool) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:  # Windows
            pass

    async with ChainClient(timeout=config.submit_timeout) as client:
        orchestrator = build_orchestrator(config, client, on_pass_complete=display.print_summary)
        display.print_banner([a.name for a in orchestrator.accounts], config.check_interval, dev_mode=config.dev_mode)
        await orchestrator.run(stop, once=once)


def check_keys(config: BotConfig) -> int:
    accounts = load_accounts(config.accounts)
    for a in accounts:
        display.console.print(f"[cyan]{a.name}[/cyan] {', '.join(a.signer.public_keys())}")
    excluded = len(config.accounts) - len(accounts)
    if excluded:
        display.console.print(f"[red]{excluded} account(s) have invalid keys[/red]")
    return 0 if accounts and not excluded else 1


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args.config)
        if getattr(args, "dev", False):
            config = dataclasses.replace(config, dev_mode=True)

        if args.command == "check-keys":
            return check_keys(config)
        if args.command == "serve":
            import uvicorn

            from claimbot.app import create_app

            uvicorn.run(create_app(config), host=args.host, port=args.port, lifespan="on")
            return 0
        asyncio.run(_run(config, once=args.once))
    except ConfigError as e:
        log.error("Configuration error: %s", e)
        return 2
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
