from __future__ import annotations

import argparse
import logging

from washdesk.cli import run_cli
from washdesk.config import ConfigError, configure_logging, load_config
from washdesk.db import Db, DbError

logger = logging.getLogger("washdesk")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="washdesk", description="Car wash back office console.")
    parser.add_argument("config", nargs="?", default="config.toml", help="path to the TOML config file")
    parser.add_argument("--init-db", action="store_true", help="create missing tables and exit")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        return 2

    configure_logging(cfg.log_level)
    db = Db(cfg.db)
    try:
        if args.init_db:
            db.apply_schema()
            print("Schema is up to date.")
        else:
            run_cli(db, cfg.business)
    except DbError as e:
        print(f"[DB ERROR] {e}")
        return 3
    except KeyboardInterrupt:
        logger.info("Stopped from keyboard")
        print("\nBye.")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
