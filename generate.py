#!/usr/bin/env python3
"""CLI wrapper for the random permutation generator.
Usage: python generate.py -u 1Gi -n 20 -s 42
Prints the first `num` numbers of a random permutation of [0, universe), one per line.
"""
import argparse
import json
import logging
import os
import re
import sys
from pathlib import Path
from typing import NoReturn

import pyperclip

from randperm.core import PermutationError, RandomPermutation, check_permutation, iter_permutation

LOGGER = logging.getLogger(__name__)

HERE = Path(__file__).resolve().parent
DEFAULT_CONFIG = HERE / "config.json"

DEFAULTS = {
    "universe": 0xFFFFFFFF,  # 32-bit numbers
    "num": 10,
    "seed": None,  # high resolution timestamp
    "common_universes": {},
}

_UNITS = {"": 1, "k": 1000, "m": 1000 ** 2, "g": 1000 ** 3, "t": 1000 ** 4, "p": 1000 ** 5, "e": 1000 ** 6,
          "ki": 1 << 10, "mi": 1 << 20, "gi": 1 << 30, "ti": 1 << 40, "pi": 1 << 50, "ei": 1 << 60}
_SIZE_RE = re.compile(r"^\s*(\d+)\s*([kmgtpe]i?)?b?\s*$", re.IGNORECASE)

def parse_size(text: str) -> int:
    """Parse an integer with an optional SI (k, M, G, ...) or IEC (Ki, Mi, Gi, ...) suffix."""
    text = str(text)
    if text.lower().startswith("0x"):
        try:
            return int(text, 16)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid size: {text!r}")
    match = _SIZE_RE.match(text)
    if not match:
        raise argparse.ArgumentTypeError(f"invalid size: {text!r}")
    number, unit = match.groups()
    return int(number) * _UNITS[(unit or "").lower()]

def parse_seed(text: str) -> int:
    """Parse a decimal seed (leading zeros allowed) or a 0x / 0o / 0b prefixed one."""
    text = str(text).strip()
    prefixed = text.lower().lstrip("+-").startswith(("0x", "0o", "0b"))
    try:
        return int(text, 0) if prefixed else int(text, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid seed: {text!r}")

def load_config(path: Path) -> dict:
    """Load config.json (if present) over the defaults, then apply environment overrides."""
    cfg = dict(DEFAULTS)
    if path.exists():
        with path.open("r", encoding="utf-8") as f:
            cfg.update(json.load(f))
    else:
        LOGGER.debug("No config file at %s, using defaults", path)

    env_universe = os.getenv("RANDPERM_UNIVERSE")
    if env_universe is not None:
        cfg["universe"] = env_universe
    env_num = os.getenv("RANDPERM_NUM")
    if env_num is not None:
        cfg["num"] = env_num
    env_seed = os.getenv("RANDPERM_SEED")
    if env_seed is not None:
        cfg["seed"] = env_seed
    return cfg

def copy_to_clipboard(text: str) -> bool:
    """Try to copy `text` to the system clipboard. Returns True on success."""
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        LOGGER.warning("Could not copy to clipboard: %s", e)
        return False
    return True

def fail(message: str) -> NoReturn:
    print(message, file=sys.stderr)
    sys.exit(2)

def main(argv=None):
    p = argparse.ArgumentParser(
        description="Generates a random permutation of a universe and prints it to the standard output.")
    p.add_argument("-n", "--num", type=parse_size, help="The number of numbers to generate (default: 10).")
    p.add_argument("-u", "--universe", type=parse_size,
                   help="The universe to draw numbers from (default: 32-bit numbers).")
    p.add_argument("-s", "--seed", type=parse_seed, help="The random seed (default: high-res timestamp).")
    p.add_argument("-c", "--check", action="store_true", help="Check that a permutation is generated.")
    p.add_argument("--copy", action="store_true", help="Copy the generated numbers to the clipboard.")
    p.add_argument("--config", default=str(DEFAULT_CONFIG), help="Path to config.json")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    cfg = load_config(Path(args.config))
    try:
        universe = args.universe if args.universe is not None else parse_size(cfg["universe"])
        num = args.num if args.num is not None else parse_size(cfg["num"])
        seed = args.seed if args.seed is not None else (None if cfg["seed"] is None else parse_seed(str(cfg["seed"])))
    except argparse.ArgumentTypeError as e:
        fail(f"invalid configuration: {e}")

    if universe < num:
        fail("the universe must be at least as large as the number of generated numbers")

    try:
        perm = RandomPermutation(universe, seed, common_universes=cfg.get("common_universes"))
    except ValueError as e:
        fail(str(e))
    LOGGER.debug("Generating %d numbers from %r", num, perm)

    if args.check:
        try:
            check_permutation(perm)
        except PermutationError as e:
            fail(f"not a permutation: {e}")

    lines = [str(x) for x in iter_permutation(perm, 0, num)]
    for line in lines:
        print(line)

    if args.copy and copy_to_clipboard("\n".join(lines)):
        print(f"(Copied {len(lines)} numbers to the clipboard.)", file=sys.stderr)
    return 0

if __name__ == "__main__":
    sys.exit(main())
