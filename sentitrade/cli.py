"""sentitrade.cli

Command line interface entry point for sentitrade.

Design constraints:
- argparse-based.
- Lazy imports: do not import heavy dependencies at parse time.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

EPILOG = "Paper trading only. No real money is involved."


@dataclass(frozen=True)
class CliContext:
    repo_root: Path


def _repo_root_from_cwd() -> Path:
    return Path.cwd()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sentitrade",
        description="Sentiment-driven paper trading engine.",
        epilog=EPILOG,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )

    sub = parser.add_subparsers(dest="command")

    p_run = sub.add_parser("run", help="Run the engine headless until interrupted")
    p_run.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until Ctrl-C).",
    )
    p_run.add_argument(
        "--idle",
        action="store_true",
        help="Only mark to market; do not start the decision loop.",
    )

    p_api = sub.add_parser("api", help="Start FastAPI server")
    p_api.add_argument("--host", default=None)
    p_api.add_argument("--port", type=int, default=None)

    p_size = sub.add_parser("size", help="Compute a position size for a symbol")
    p_size.add_argument("symbol")
    p_size.add_argument("--balance", type=float, default=None, help="Account balance (default: initial balance).")
    p_size.add_argument("--risk", type=float, default=None, help="Risk percentage (default: configured).")
    p_size.add_argument("--stop", type=float, default=None, help="Stop-loss distance (default: configured).")

    sub.add_parser("status", help="Print configuration summary")

    return parser


def _print_version() -> None:
    from sentitrade import __version__

    print(f"sentitrade v{__version__}")


def _load_config(ctx: CliContext):
    from sentitrade.core.config import Config

    return Config.load(ctx.repo_root)


def _cmd_run(ctx: CliContext, args: argparse.Namespace) -> int:
    import asyncio

    from sentitrade import SIMULATION_DISCLAIMER
    from sentitrade.core.exceptions import ConfigError
    from sentitrade.core.logs import configure_logging

    try:
        config = _load_config(ctx)
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 1
    configure_logging(config.logging)
    print(SIMULATION_DISCLAIMER)

    async def _main() -> None:
        from sentitrade.brain.engine import TradingEngine

        engine = TradingEngine.from_config(config)
        await engine.open()
        if not args.idle:
            await engine.start()
        try:
            if args.duration is not None:
                await asyncio.sleep(max(0.0, float(args.duration)))
            else:
                await asyncio.Event().wait()
        finally:
            await engine.close()
            ledger = engine.ledger()
            print(f"balance={ledger.balance:.2f} equity={ledger.equity:.2f} trades={len(engine.trades())}")

    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass
    return 0


def _cmd_api(ctx: CliContext, args: argparse.Namespace) -> int:
    config = _load_config(ctx)

    host = args.host or config.api.host
    port = args.port or config.api.port

    import uvicorn

    from sentitrade.core.logs import configure_logging

    configure_logging(config.logging)
    uvicorn.run("api.main:app", host=host, port=port, reload=False, log_config=None)
    return 0


def _cmd_size(ctx: CliContext, args: argparse.Namespace) -> int:
    from sentitrade.core.assets import AssetRegistry, parse_symbol
    from sentitrade.core.exceptions import ConfigError, SizeTooSmallError
    from sentitrade.core.types import Direction, RiskSettings
    from sentitrade.execution.position_sizer import PositionSizer

    try:
        config = _load_config(ctx)
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 1
    registry = AssetRegistry.from_config(config)
    try:
        sym = parse_symbol(args.symbol)
        asset = registry.get(sym)
        defaults = registry.default_risk_settings(config.risk)[sym]
        risk = RiskSettings(
            risk_percentage=args.risk if args.risk is not None else defaults.risk_percentage,
            stop_loss_distance=args.stop if args.stop is not None else defaults.stop_loss_distance,
        )
    except (KeyError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    balance = args.balance if args.balance is not None else config.engine.initial_balance
    sizer = PositionSizer()
    try:
        res = sizer.size(balance=balance, risk=risk, contract_size=asset.contract_size)
    except SizeTooSmallError as e:
        print(f"{sym}: lot size too small (risk amount ${e.risk_amount:.2f})", file=sys.stderr)
        return 1

    entry = asset.initial_price
    print(f"{sym} ({asset.display_name})")
    print(f"- risk amount: ${res.risk_amount:.2f}")
    print(f"- lot size: {res.lot_size:.2f}")
    for d in Direction:
        sl = sizer.stop_loss_price(direction=d, entry_price=entry, stop_loss_distance=risk.stop_loss_distance)
        print(f"- {d.side} @ {entry:.2f}: stop {sl:.2f}")
    return 0


def _cmd_status(ctx: CliContext, args: argparse.Namespace) -> int:
    from sentitrade.core.config import Config

    repo_root = ctx.repo_root
    cfg_user = repo_root / "config" / "user.yaml"
    cfg = cfg_user if cfg_user.exists() else repo_root / "config" / "default.yaml"

    try:
        config = Config.from_yaml(cfg)
    except Exception as e:
        print(f"sentitrade status\n- config: {cfg} (error: {e})")
        return 1

    print("sentitrade status")
    print(f"- config: {cfg}")
    print(f"- preset: {config.preset}")
    print(f"- symbols: {', '.join(config.assets)}")
    print(f"- initial balance: {config.engine.initial_balance:.2f}")
    print(f"- decision interval: {config.engine.decision_interval_s:g}s")
    print(f"- mark-to-market interval: {config.engine.mark_interval_s:g}s")
    print(f"- live prices: {'on' if config.prices.live else 'off (synthetic)'}")
    print(f"- signal endpoint: {config.signals.endpoint_url or 'not configured'}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    ctx = CliContext(repo_root=_repo_root_from_cwd())

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "run": _cmd_run,
        "api": _cmd_api,
        "size": _cmd_size,
        "status": _cmd_status,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    return int(fn(ctx, args))


if __name__ == "__main__":
    raise SystemExit(main())
