#!/usr/bin/env python
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

# Add project root to sys.path for the "clarity" package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from clarity.pipeline import RESULT_FILE, load_comparison  # noqa: E402
from clarity.viz.report import render_report  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser(description="Re-render the sharpness comparison report")
    ap.add_argument("--out", required=True, help="Output directory where comparison.json lives")
    args = ap.parse_args()

    out_root = Path(args.out)
    data = load_comparison(out_root / RESULT_FILE)
    if not data:
        raise SystemExit(f"{RESULT_FILE} not found. Run scripts/compare_photos.py --out first.")
    report = render_report(out_root, data)
    print(f"Report written to {report}")


if __name__ == "__main__":
    main()
