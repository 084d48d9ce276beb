"""Entry point: ``python -m timevault``.

Supports three modes:
  - ``python -m timevault``           → Launch the ledger REST API server
  - ``python -m timevault verify``    → Run the off-chain verifier against a running server
  - ``python -m timevault replay F``  → Re-execute a recorded call log and check its fingerprint
"""

from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger(__name__)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING"]


def _add_ledger_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--admin", type=str, default="0xadmin")
    parser.add_argument("--oracle", type=str, default="0xoracle")
    parser.add_argument("--beneficiary", type=str, default=None)
    parser.add_argument("--admission", type=str, default="caller", choices=["caller", "signed"],
                        help="Oracle trust model: authorized caller or signed verdicts")
    parser.add_argument("--oracle-key-hex", type=str, default="",
                        help="HMAC key for signed verdicts (hex)")
    parser.add_argument("--no-badges", action="store_true", help="Deploy without a badge registry")
    parser.add_argument("--log-level", type=str, default="INFO", choices=_LOG_LEVELS)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TimeVault goal staking ledger")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the ledger REST API server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--record", type=str, default=None, metavar="PATH",
                     help="Record every call to a replay file on shutdown")
    _add_ledger_args(srv)

    # --- Verifier ---
    ver = sub.add_parser("verify", help="Run the off-chain verifier (settings from environment)")
    ver.add_argument("--once", action="store_true", help="Poll once and exit")
    ver.add_argument("--log-level", type=str, default="INFO", choices=_LOG_LEVELS)

    # --- Replay ---
    rep = sub.add_parser("replay", help="Re-execute a replay file and compare fingerprints")
    rep.add_argument("path", type=str)
    _add_ledger_args(rep)

    return parser


def _ledger_config(args: argparse.Namespace):
    from timevault.config import LedgerConfig
    from timevault.core.enums import AdmissionMode

    mode = AdmissionMode.SIGNED if args.admission == "signed" else AdmissionMode.AUTHORIZED_CALLER
    return LedgerConfig(
        admin=args.admin,
        oracle=args.oracle,
        beneficiary=args.beneficiary,
        admission_mode=mode,
        oracle_key=bytes.fromhex(args.oracle_key_hex),
        badges_enabled=not args.no_badges,
        log_level=args.log_level,
    )


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from timevault.api.app import create_app
    from timevault.api.ledger_manager import LedgerManager
    from timevault.utils.replay import ReplayRecorder

    config = _ledger_config(args)
    recorder = ReplayRecorder(args.record, label=f"{args.host}:{args.port}") if args.record else None
    manager = LedgerManager(config, recorder=recorder)
    app = create_app(config, manager=manager)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_verifier(args: argparse.Namespace) -> int:
    from timevault.engine.admission import OracleSigner
    from timevault.utils.logging import setup_logging
    from timevault.verifier.client import HttpLedgerClient
    from timevault.verifier.config import get_verifier_config
    from timevault.verifier.proof_content import fetch_proof
    from timevault.verifier.scoring import GroqScorer
    from timevault.verifier.service import VerifierService

    setup_logging(args.log_level, quiet=("httpx", "httpcore"))
    cfg = get_verifier_config()
    if not cfg.groq_api_key:
        logger.error("GROQ_API_KEY is not set")
        return 1

    signer = OracleSigner(cfg.oracle, cfg.oracle_key) if cfg.oracle_key else None
    client = HttpLedgerClient(cfg.api_url, cfg.oracle, signer)
    scorer = GroqScorer(cfg.groq_api_key, cfg.groq_model, timeout=cfg.scoring_timeout)
    service = VerifierService(
        client, scorer,
        fetcher=lambda ref: fetch_proof(ref, gateway_url=cfg.gateway_url, timeout=cfg.fetch_timeout),
        poll_seconds=cfg.poll_seconds,
        pass_threshold=cfg.pass_threshold,
        fail_threshold=cfg.fail_threshold,
    )
    logger.info("Verifier watching %s (signed=%s)", cfg.api_url, signer is not None)
    try:
        if args.once:
            service.poll_once()
        else:
            service.run()
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        client.close()
        scorer.close()
    return 0


def _run_replay(args: argparse.Namespace) -> int:
    from timevault.api.ledger_manager import LedgerManager, ReplayDivergenceError
    from timevault.systems.clock import ManualClock
    from timevault.utils.logging import setup_logging
    from timevault.utils.replay import load_replay

    config = _ledger_config(args)
    setup_logging(config.log_level)

    data = load_replay(args.path)
    calls = data["calls"]
    clock = ManualClock(calls[0]["timestamp"] if calls else 0)
    manager = LedgerManager(config, clock=clock)
    try:
        count = manager.replay(calls, clock)
    except ReplayDivergenceError as exc:
        logger.error("%s", exc)
        return 1

    fingerprint = manager.fingerprint()
    expected = data.get("fingerprint")
    logger.info("Replayed %d calls; fingerprint %s", count, fingerprint)
    if expected is not None and expected != fingerprint:
        logger.error("Fingerprint mismatch: recorded %s, replayed %s", expected, fingerprint)
        return 1
    return 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            args = parser.parse_args(["serve"])
        _run_server(args)
    elif args.command == "verify":
        sys.exit(_run_verifier(args))
    elif args.command == "replay":
        sys.exit(_run_replay(args))


if __name__ == "__main__":
    main()
