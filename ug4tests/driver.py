"""
Command-line driver for the Laplace regression case.

Runs the case on a grid and either compares the solution against the stored
reference (exit status 0 on match, 1 on mismatch) or, with
--write-reference, replaces the reference by the new solution.
"""
import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from .config import LaplaceConfig
from .laplace import Laplace

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_GRID = PROJECT_ROOT / "regression_tests" / "grids" / "laplace_cube_3d.ugx"
DEFAULT_REFERENCE = PROJECT_ROOT / "regression_tests" / "references" / "laplace.txt"


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the Laplace regression test")
    parser.add_argument("--grid", default=str(DEFAULT_GRID), help="UGX grid file")
    parser.add_argument("--reference", default=str(DEFAULT_REFERENCE), help="Reference solution file")
    parser.add_argument("--refinements", type=int, default=LaplaceConfig().num_refinements,
                        help="Number of uniform refinements (default: %(default)s)")
    parser.add_argument("--write-reference", action="store_true",
                        help="Store the computed solution as the new reference")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s: %(message)s",
    )

    config = replace(LaplaceConfig(), num_refinements=args.refinements)
    case = Laplace(args.grid, args.reference, config)
    case.run()

    if args.write_reference:
        case.write_reference()
        print(f"Wrote {case.solution.size} values to {args.reference}")
        return 0

    passed = case.compare()
    print(f"Laplace regression: {'PASSED' if passed else 'FAILED'}")
    return 0 if passed else 1


if __name__ == "__main__":
    raise SystemExit(main())
