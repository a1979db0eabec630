"""Command-line entry point that writes one P2O run configuration.

Example::

    python scripts/build_config.py 7 1 1 --set recycling_rate=0.3 --set waste_reduction=0.1

writes the engine files for LI_Urban / baseline / zone 1 with a 30%
recycling rate and 10% waste reduction into ``config_files_temp``.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from p2o_params.pipeline import run_scenario


def parse_knobs(pairs: List[str]) -> Dict[str, Any]:
    """Turn ``name=value`` pairs into a modification mapping of floats."""
    mods: Dict[str, Any] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"expected name=value, got {pair!r}")
        mods[name.strip()] = float(value)
    return mods


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("archetype", type=int, help="archetype ID (1-8)")
    parser.add_argument("scenario", type=int, help="scenario ID (1-6)")
    parser.add_argument("zone", type=int, help="zone ID (1-2)")
    parser.add_argument("--set", dest="knobs", action="append", default=[], metavar="NAME=VALUE")
    parser.add_argument("--output-dir", default="config_files_temp")
    parser.add_argument("--duration", type=int, default=25)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    try:
        mods = parse_knobs(args.knobs)
    except (argparse.ArgumentTypeError, ValueError) as exc:
        parser.error(str(exc))
    result = run_scenario(
        args.archetype, args.scenario, args.zone, mods, output_dir=args.output_dir, duration=args.duration
    )
    for path in result.files.values():
        print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
