#!/usr/bin/env python3
"""
Fallback Dataset Validator

Checks that a fallback dataset file can stand in for the live views while
the Firestore read quota is exhausted.

Usage:
    python scripts/validate_fallback_data.py [PATH] [OPTIONS]

Options:
    --strict    Also require the pre-shaped views to match the views derived
                from the dataset's records

Examples:
    python scripts/validate_fallback_data.py                   # Bundled dataset
    python scripts/validate_fallback_data.py data.json --strict

Exit status is 0 when the dataset is usable, 1 otherwise.
"""

import argparse
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from config import DEFAULT_FALLBACK_DATA_PATH
from exceptions import FallbackDatasetError
from records.fallback import FallbackDataset, check_consistency, read_payload


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Validate a fallback dataset file")
    parser.add_argument(
        "path",
        nargs="?",
        default=str(DEFAULT_FALLBACK_DATA_PATH),
        help="Dataset to check (default: bundled dataset)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Require pre-shaped views to match the derived views",
    )
    args = parser.parse_args(argv)

    print(f"Validating {args.path}")
    try:
        payload = read_payload(args.path)
    except FallbackDatasetError as e:
        print(f"  ✗ {e.message}")
        for problem in e.details.get("problems", []):
            print(f"    - {problem}")
        return 1

    if args.strict:
        problems = check_consistency(payload)
        if problems:
            for problem in problems:
                print(f"  ✗ {problem}")
            return 1

    counts = FallbackDataset(payload, source=args.path).info()["counts"]
    print(
        f"  ✓ Dataset is usable: {counts['all']} records, "
        f"{counts['version1']} in version1, {counts['version2']} in version2"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
