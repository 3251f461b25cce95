"""Command-line access to a configured store.

    python kvshim.py [--config PATH] [--log-level LEVEL] set KEY VALUE
    python kvshim.py get KEY
    python kvshim.py delete KEY

Exit codes: 0 on success, 1 when `get` finds no value, 2 on store or
configuration errors.
"""
from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from kvshim_lib.config.config import DEFAULT_CONFIG_PATH, CliConfig, load_config
from kvshim_lib.errors import StoreError
from kvshim_lib.logging_config import configure_logging
from kvshim_lib.storage import Store, create_store

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="kvshim", description="Set, get and delete values in a key-value store")
    p.add_argument("--config", type=Path, default=None, help="YAML config file (default: kvshim.yml)")
    p.add_argument("--log-level", default=None, help="Override the log level of the config file")
    sub = p.add_subparsers(dest="command", required=True)

    p_set = sub.add_parser("set", help="Store VALUE under KEY")
    p_set.add_argument("key")
    p_set.add_argument("value", help="JSON document; anything that is not valid JSON is stored as a string")

    p_get = sub.add_parser("get", help="Print the value stored under KEY as JSON")
    p_get.add_argument("key")

    p_del = sub.add_parser("delete", help="Delete KEY")
    p_del.add_argument("key")
    return p


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    if argv is not None:
        argv = list(argv)
    return get_parser().parse_args(argv)


def parse_value(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


def open_store(cfg: CliConfig) -> Store:
    return create_store(cfg.implementation, codec=cfg.encoding, **cfg.options)


def run(args: argparse.Namespace, cfg: CliConfig) -> int:
    with open_store(cfg) as store:
        if args.command == "set":
            store.set(args.key, parse_value(args.value))
            return EXIT_OK
        if args.command == "get":
            result = store.get(args.key, Any)
            if not result:
                print(f"key not found: {args.key}", file=sys.stderr)
                return EXIT_NOT_FOUND
            print(json.dumps(result.value, default=str))
            return EXIT_OK
        store.delete(args.key)
        return EXIT_OK


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    try:
        cfg = load_config(args.config)
    except (OSError, ValueError, ValidationError) as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return EXIT_ERROR
    logger.debug("Using %s store with %s encoding", cfg.implementation, cfg.encoding)
    try:
        return run(args, cfg)
    except (StoreError, ValueError, ValidationError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


def console_main() -> None:
    argv = sys.argv[1:]
    args = parse_args(argv)
    # Configure logging before any store is created so client libraries
    # pick up the selected level.
    configure_logging(level=args.log_level, config_path=args.config or DEFAULT_CONFIG_PATH)
    sys.exit(main(argv))
