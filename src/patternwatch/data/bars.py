"""
Boundary adapters that turn producer bar shapes into canonical ``Bar`` lists.

The classifiers only ever see ``Bar``; every upstream shape is converted here.
"""

from typing import Any, Iterable, Mapping, Optional, Sequence

import pandas as pd

from patternwatch.core.models import Bar

OHLCV_COLUMNS = ["open", "high", "low", "close", "volume"]


def normalize_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize DataFrame column names to lowercase, stripped.

    Args:
        df: Input DataFrame

    Returns:
        Copy of the DataFrame with normalized column names
    """
    df = df.copy()
    if df.empty:
        return df

    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)

    df.columns = df.columns.astype(str).str.lower().str.strip()

    return df


def bars_from_frame(df: pd.DataFrame) -> list[Bar]:
    """
    Convert an OHLCV DataFrame into bars.

    Open times come from an ``open_time`` column (epoch ms) when present,
    otherwise from a datetime index.

    Raises:
        ValueError: If an OHLCV column is missing
    """
    df = normalize_dataframe(df)
    if df.empty:
        return []

    missing = [c for c in OHLCV_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing OHLCV columns: {missing}")

    if "open_time" in df.columns:
        open_times = df["open_time"].astype("int64").tolist()
    else:
        idx = pd.DatetimeIndex(df.index)
        if idx.tz is not None:
            idx = idx.tz_convert("UTC").tz_localize(None)
        open_times = ((idx - pd.Timestamp(0)) // pd.Timedelta(milliseconds=1)).astype("int64").tolist()

    bars = [
        Bar(
            open_time=int(t),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for t, row in zip(open_times, df[OHLCV_COLUMNS].itertuples(index=False))
    ]
    bars.sort(key=lambda b: b.open_time)
    return bars


def bars_to_frame(bars: Sequence[Bar]) -> pd.DataFrame:
    """
    Convert bars into a DataFrame indexed by UTC open time.

    The ``open_time`` column keeps the epoch-millisecond value.
    """
    df = pd.DataFrame(
        [b.model_dump() for b in bars],
        columns=["open_time", *OHLCV_COLUMNS],
    )
    df.index = pd.to_datetime(df["open_time"], unit="ms", utc=True)
    df.index.name = "ts"
    return df


def bars_from_klines(rows: Iterable[Sequence[Any]]) -> list[Bar]:
    """
    Convert exchange REST kline arrays into bars.

    Each row starts ``[open_time, open, high, low, close, volume, ...]`` with
    prices as numbers or numeric strings; trailing fields are ignored.
    Rows sharing an open time (overlapping pages) collapse to the last one.

    Raises:
        ValueError: If a row is too short or not numeric
    """
    by_open_time: dict[int, Bar] = {}
    for row in rows:
        if len(row) < 6:
            raise ValueError(f"Kline row needs at least 6 fields, got {len(row)}")
        bar = Bar(
            open_time=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
        )
        by_open_time[bar.open_time] = bar
    return sorted(by_open_time.values(), key=lambda b: b.open_time)


def bar_from_stream_event(event: Mapping[str, Any]) -> tuple[Bar, bool]:
    """
    Convert a streaming kline event into a bar.

    Accepts the full event (``{"k": {...}}``) or the bare kline payload.

    Returns:
        Tuple of (bar, is_final) where ``is_final`` is False for a bar
        still in progress

    Raises:
        ValueError: If a required field is missing
    """
    kline = event.get("k", event)
    try:
        bar = Bar(
            open_time=int(kline["t"]),
            open=float(kline["o"]),
            high=float(kline["h"]),
            low=float(kline["l"]),
            close=float(kline["c"]),
            volume=float(kline["v"]),
        )
    except KeyError as e:
        raise ValueError(f"Kline event missing field {e}") from e

    return bar, bool(kline.get("x", False))


def merge_bar(
    history: Sequence[Bar],
    bar: Bar,
    limit: Optional[int] = None,
) -> list[Bar]:
    """
    Apply an incremental bar to a history.

    A bar with the same open time as the last one replaces it (in-progress
    update); a newer bar is appended. The result is trimmed to the most
    recent ``limit`` bars. ``history`` is not modified.

    Raises:
        ValueError: If ``bar`` is older than the last bar in ``history``
    """
    merged = list(history)

    if merged and bar.open_time < merged[-1].open_time:
        raise ValueError(
            f"Bar at {bar.open_time} is older than last bar at {merged[-1].open_time}"
        )

    if merged and bar.open_time == merged[-1].open_time:
        merged[-1] = bar
    else:
        merged.append(bar)

    if limit is not None and len(merged) > limit:
        merged = merged[-limit:]

    return merged
