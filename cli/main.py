"""Command-line entry points for encoding, decoding, breaking and plotting."""

from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path
import sys

# Allow `python cli/main.py ...` execution from IDEs by adding repo root to sys.path.
if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from cipher.alphabet import Alphabet
from configs.loader import DEFAULT_ALPHABET, ConfigLoader
from core.session import CipherSession
from data.logger import BreakLogger
from main import build_session, run_break

LOGGER = logging.getLogger(__name__)


def _read_text(args: argparse.Namespace) -> str:
    if args.text is not None:
        return str(args.text)
    if args.input:
        return Path(args.input).read_text(encoding="utf-8")
    return sys.stdin.read()


def _add_text_source(cmd: argparse.ArgumentParser) -> None:
    source = cmd.add_mutually_exclusive_group()
    source.add_argument("--text")
    source.add_argument("--input", help="Read the text from a file instead of stdin.")


def _run_substitution(args: argparse.Namespace) -> int:
    session = CipherSession(Alphabet(args.alphabet.upper()))
    try:
        key = session.validate_key_text(args.key)
        text = _read_text(args)
        machine = session.machine
        if args.command == "encode":
            result = machine.encode_with_clearing(text, key) if args.clear else machine.encode_with_ignoring(text, key)
        else:
            result = machine.decode_with_clearing(text, key) if args.clear else machine.decode_with_ignoring(text, key)
    finally:
        session.close()
    print(result)
    return 0


def _run_break(args: argparse.Namespace) -> int:
    config = ConfigLoader.load(args.config)
    if args.seed is not None:
        config = dataclasses.replace(config, seed=args.seed)
    try:
        session = build_session(config, quadgrams_path=args.quadgrams)
    except OSError as exc:
        print(f"error: cannot read quadgram dataset: {exc}", file=sys.stderr)
        return 2
    if session.fitness is None:
        session.close()
        print("error: no quadgram dataset configured; pass --quadgrams", file=sys.stderr)
        return 2
    logger = BreakLogger(args.db) if args.db else None
    try:
        plaintext, run_id = run_break(
            session,
            config,
            _read_text(args),
            logger=logger,
            progress=None if args.quiet else lambda line: print(line, file=sys.stderr),
        )
    finally:
        session.close()
        if logger is not None:
            logger.close()
    if run_id is not None:
        LOGGER.info("Logged run %s to %s", run_id, args.db)
    print(plaintext)
    return 0


def run_cli(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="cipherbreak")
    sub = parser.add_subparsers(dest="command", required=False)

    for name in ("encode", "decode"):
        cmd = sub.add_parser(name)
        cmd.add_argument("--key", required=True)
        cmd.add_argument("--alphabet", default=DEFAULT_ALPHABET)
        cmd.add_argument("--clear", action="store_true", help="Drop characters outside the alphabet.")
        _add_text_source(cmd)

    keygen_cmd = sub.add_parser("keygen")
    keygen_cmd.add_argument("--alphabet", default=DEFAULT_ALPHABET)
    keygen_cmd.add_argument("--seed", type=int)

    break_cmd = sub.add_parser("break")
    break_cmd.add_argument("--config", default="configs/default_breaker.yaml")
    break_cmd.add_argument("--quadgrams")
    break_cmd.add_argument("--db")
    break_cmd.add_argument("--seed", type=int)
    break_cmd.add_argument("--quiet", action="store_true")
    _add_text_source(break_cmd)

    plot_cmd = sub.add_parser("plot")
    plot_cmd.add_argument("--run")
    plot_cmd.add_argument("--db", default="break_runs.db")
    plot_cmd.add_argument("--out", default="artifacts/fitness.png")

    gui_cmd = sub.add_parser("gui")
    gui_cmd.add_argument("--config", default="configs/default_breaker.yaml")
    gui_cmd.add_argument("--quadgrams")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command in {"encode", "decode"}:
            return _run_substitution(args)

        if args.command == "keygen":
            session = CipherSession(Alphabet(args.alphabet.upper()), seed=args.seed)
            try:
                print(session.random_key_text())
            finally:
                session.close()
            return 0

        if args.command == "break":
            return _run_break(args)
    except ValueError as exc:
        # CipherError, bad config files and unusable datasets.
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.command == "plot":
        from visualization.plotting import plot_run

        run_id = args.run
        if run_id is None:
            logger = BreakLogger(args.db)
            try:
                run_id = logger.latest_run_id()
            finally:
                logger.close()
            if run_id is None:
                print(f"error: no runs logged in {args.db}", file=sys.stderr)
                return 2
        print(plot_run(args.db, run_id, args.out))
        return 0

    if args.command == "gui":
        from gui.app import main as gui_main

        return int(gui_main(args.config, quadgrams_path=args.quadgrams))

    return 1


if __name__ == "__main__":
    raise SystemExit(run_cli())
