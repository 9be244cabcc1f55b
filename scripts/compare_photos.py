#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
import os
import sys

# Add project root to sys.path for the "clarity" package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from clarity.pipeline import compare_images, run_comparison  # noqa: E402
from clarity.quality.sharpness import DEFAULT_VARIANCE_THRESHOLD  # noqa: E402
from clarity.utils.image import MAX_SIDE, ImageLoadError  # noqa: E402
from clarity.utils.logging import setup_logger  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser(description="Compare the sharpness of two photos")
    ap.add_argument("--a", required=True, help="Photo A path")
    ap.add_argument("--b", required=True, help="Photo B path")
    ap.add_argument("--out", help="Optional output directory for comparison.json and report.html")
    ap.add_argument("--max-side", type=int, default=MAX_SIDE, help="Downscale so the longest side is at most this (0 disables)")
    ap.add_argument(
        "--threshold",
        type=float,
        default=DEFAULT_VARIANCE_THRESHOLD,
        help="Laplacian variance at or below which Tenengrad is used instead",
    )
    ap.add_argument("--json", action="store_true", help="Print the full result as JSON instead of the verdict")
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING (default: $CLARITY_LOG_LEVEL or INFO)")
    args = ap.parse_args()

    if args.log_level:
        setup_logger(args.log_level)

    try:
        if args.out:
            result = run_comparison(
                args.a,
                args.b,
                args.out,
                max_side=args.max_side,
                variance_threshold=args.threshold,
            )
        else:
            result = compare_images(
                args.a,
                args.b,
                max_side=args.max_side,
                variance_threshold=args.threshold,
            ).to_dict()
    except ImageLoadError as e:
        raise SystemExit(f"Could not load photo: {e}")

    if args.json:
        print(json.dumps(result, ensure_ascii=False, indent=2))
    else:
        print(result["message"])


if __name__ == "__main__":
    main()
