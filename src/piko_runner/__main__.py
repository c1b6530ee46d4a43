"""
Command-line entry point: python -m piko_runner [--db PATH] [--seed N] [--mute]
"""

import argparse
import logging

from .constants import DB_FILE
from .runner_client import RunnerClient
from .save_store import SaveStore


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="piko-runner", description="Endless lane runner.")
    parser.add_argument("--db", default=DB_FILE, help="SQLite file holding scores and settings")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible spawns")
    parser.add_argument("--mute", action="store_true", help="Disable the audio device entirely")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    store = SaveStore(args.db)
    print(f"Using save file {args.db}")
    try:
        RunnerClient(store, seed=args.seed, mute=args.mute).run()
    finally:
        store.close()


if __name__ == "__main__":
    main()
