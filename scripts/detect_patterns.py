#!/usr/bin/env python3
"""
Run pattern detection over a saved bar dump.

Accepts a CSV with OHLCV columns (and either an ``open_time`` column in epoch
ms or a datetime first column) or a JSON array of exchange kline rows.
"""

import argparse
import json
import sys
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from patternwatch.config import get_logger, setup_logging
from patternwatch.data import bars_from_frame, bars_from_klines
from patternwatch.features import DetectionConfig, PatternDetector, describe_pattern

logger = get_logger("scripts.detect_patterns")


def load_bars(path: Path, fmt: str):
    """Load bars from CSV or JSON klines."""
    if fmt == "json":
        with open(path) as f:
            return bars_from_klines(json.load(f))

    df = pd.read_csv(path)
    if "open_time" not in df.columns.str.lower():
        df = pd.read_csv(path, index_col=0, parse_dates=True)
    return bars_from_frame(df)


def main() -> int:
    parser = argparse.ArgumentParser(description="Detect chart patterns in a bar dump")
    parser.add_argument("path", type=Path, help="CSV or JSON kline file")
    parser.add_argument("--symbol", required=True, help="Instrument identifier")
    parser.add_argument("--format", choices=["csv", "json"], default=None, help="Input format (default: from extension)")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args()

    load_dotenv()
    setup_logging(args.log_level)

    fmt = args.format or ("json" if args.path.suffix.lower() == ".json" else "csv")
    bars = load_bars(args.path, fmt)
    logger.info(f"Loaded {len(bars)} bars for {args.symbol} from {args.path}")

    detector = PatternDetector(DetectionConfig.from_settings())
    patterns = detector.detect(bars, args.symbol)

    if not patterns:
        logger.info("No patterns detected")
        return 0

    for pattern in patterns:
        logger.info(describe_pattern(pattern))
        print(pattern.model_dump_json(indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
