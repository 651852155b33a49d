"""CLI entry point for qoh-wallet."""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from .app import WalletApp
from .config import WalletConfig, load_config
from .outcomes import ActionOutcome, ActionResult


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qoh-wallet", description="Queen of Hearts wallet demo")
    parser.add_argument("--config", type=str, help="Path to qoh-wallet.yaml")
    parser.add_argument("--storage", type=str, help="Override storage.path (SQLite file)")
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--validate-config", action="store_true", help="Validate config and exit")
    sub = parser.add_subparsers(dest="area")

    # ── player ───────────────────────────────────────────────
    player = sub.add_parser("player", help="Player-facing actions")
    pcmd = player.add_subparsers(dest="command", required=True)
    pcmd.add_parser("show", help="Show the active player")
    p = pcmd.add_parser("login", help="Switch the active player")
    p.add_argument("player_id", type=int)
    p = pcmd.add_parser("signup", help="Create a player and make it active")
    p.add_argument("name")
    p.add_argument("email")
    p = pcmd.add_parser("deposit", help="Add funds to the wallet")
    p.add_argument("amount")
    p.add_argument("--method", default=None)
    p = pcmd.add_parser("add-game", help="Create a game account")
    p.add_argument("game")
    p.add_argument("--username", default=None)
    p = pcmd.add_parser("suggest", help="Suggest a username for a game")
    p.add_argument("game")
    p = pcmd.add_parser("transfer", help="Move wallet funds to a game account")
    p.add_argument("account_id")
    p.add_argument("amount")
    pcmd.add_parser("reset", help="Replace all data with the demo seed")

    # ── admin ────────────────────────────────────────────────
    admin = sub.add_parser("admin", help="Administrative actions")
    acmd = admin.add_subparsers(dest="command", required=True)
    acmd.add_parser("show", help="Show player and transfer rosters")
    p = acmd.add_parser("create-player", help="Create a player")
    p.add_argument("name")
    p.add_argument("email")
    p = acmd.add_parser("add-game", help="Create a game account for a player")
    p.add_argument("player_id")
    p.add_argument("game")
    p.add_argument("username")
    p = acmd.add_parser("approve", help="Approve a pending transfer")
    p.add_argument("transfer_id")
    acmd.add_parser("reset", help="Replace all data with the demo seed")

    # ── watch ────────────────────────────────────────────────
    watch = sub.add_parser("watch", help="Re-render when another process writes")
    watch.add_argument("--duration", type=float, default=None, help="Stop after N seconds")
    return parser


def resolve_config(args: argparse.Namespace) -> WalletConfig:
    config_path = args.config
    if not config_path and Path("qoh-wallet.yaml").exists():
        config_path = "qoh-wallet.yaml"
    config = load_config(config_path)
    if args.storage:
        config.storage.path = args.storage
    return config


def _exit_code(outcome: ActionOutcome) -> int:
    return 0 if outcome.result in (ActionResult.SUCCESS, ActionResult.IGNORED) else 1


def run_player(app: WalletApp, args: argparse.Namespace) -> int:
    player = app.player
    if args.command == "show":
        player.start()
        return 0
    if args.command == "suggest":
        print(player.suggest_username(args.game))
        return 0
    if args.command == "login":
        outcome = player.switch_player(args.player_id)
    elif args.command == "signup":
        outcome = player.sign_up(args.name, args.email)
    elif args.command == "deposit":
        outcome = player.deposit(args.amount, args.method)
    elif args.command == "add-game":
        outcome = player.create_game_account(args.game, args.username)
    elif args.command == "transfer":
        outcome = player.request_transfer(args.account_id, args.amount)
    else:
        outcome = player.reset()
    return _exit_code(outcome)


def run_admin(app: WalletApp, args: argparse.Namespace) -> int:
    admin = app.admin
    if args.command == "show":
        admin.start()
        return 0
    if args.command == "create-player":
        outcome = admin.create_player(args.name, args.email)
    elif args.command == "add-game":
        outcome = admin.create_game_account(args.player_id, args.game, args.username)
    elif args.command == "approve":
        outcome = admin.approve_transfer(args.transfer_id)
    else:
        outcome = admin.reset()
    return _exit_code(outcome)


async def run_watch(app: WalletApp, duration: float | None = None) -> None:
    app.admin.start()
    await app.start()

    stop_event = asyncio.Event()
    # Signal handling (Unix only; Windows uses KeyboardInterrupt)
    loop = asyncio.get_running_loop()
    signals = (signal.SIGTERM, signal.SIGINT) if sys.platform != "win32" else ()
    for sig in signals:
        loop.add_signal_handler(sig, stop_event.set)

    try:
        if duration is None:
            await stop_event.wait()
        else:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=duration)
            except asyncio.TimeoutError:
                pass
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
        await app.stop()


def run(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    logger = logging.getLogger("qoh")

    try:
        config = resolve_config(args)
    except (FileNotFoundError, ValueError, ValidationError, yaml.YAMLError) as e:
        logger.error("Config validation failed: %s", e)
        return 1

    if args.validate_config:
        logger.info("Config is valid.")
        return 0

    if args.area is None:
        parser.print_help()
        return 0

    app = WalletApp(config=config)
    if args.area == "player":
        return run_player(app, args)
    if args.area == "admin":
        return run_admin(app, args)

    try:
        asyncio.run(run_watch(app, args.duration))
    except KeyboardInterrupt:
        pass
    return 0


def main() -> None:
    """Sync entry point for pyproject.toml [project.scripts]."""
    sys.exit(run())


if __name__ == "__main__":
    main()
