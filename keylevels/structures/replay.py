"""
Batch replay of the level aggregator over pandas OHLC frames.

Lets the streaming trackers run over historical data for research and for
checking against vectorized computations. Auxiliary frames are aligned
causally: at each primary bar only the latest auxiliary bar that has
already opened is visible, and its in-progress high/low is rebuilt from
the primary bars seen so far in that period, so nothing leaks from the
future.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..config.config import KeyLevelsConfig
from ..utils.timeframes import validate_aux_tf
from .aggregator import LevelSnapshotAggregator
from .base import AuxBarData, BarData

PRIMARY_COLUMNS = ("open", "high", "low", "close")
AUX_COLUMNS = ("open", "high", "low")


def _utc_timestamps(df: pd.DataFrame, what: str) -> pd.DatetimeIndex:
    """Timestamps from a 'timestamp' column or the index, as UTC (naive = UTC)."""
    if "timestamp" in df.columns:
        ts = pd.DatetimeIndex(pd.to_datetime(df["timestamp"], utc=True))
    elif isinstance(df.index, pd.DatetimeIndex):
        ts = pd.DatetimeIndex(pd.to_datetime(df.index, utc=True))
    else:
        raise ValueError(
            f"{what} frame has no 'timestamp' column and no DatetimeIndex\n"
            f"\n"
            f"Fix: df = df.set_index('timestamp') or add a 'timestamp' column"
        )

    if not ts.is_monotonic_increasing or ts.has_duplicates:
        raise ValueError(
            f"{what} timestamps must be strictly increasing\n"
            f"\n"
            f"Fix: df = df.sort_values('timestamp').drop_duplicates('timestamp')"
        )
    return ts


def _require_columns(df: pd.DataFrame, columns: tuple[str, ...], what: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(
            f"{what} frame missing columns: {missing}\n"
            f"\n"
            f"Fix: provide columns {list(columns)}"
        )


def _as_ns(ts: pd.DatetimeIndex) -> np.ndarray:
    return ts.tz_convert(None).to_numpy().astype("datetime64[ns]")


def build_aux_view(
    primary_ts: pd.DatetimeIndex,
    primary_high: np.ndarray,
    primary_low: np.ndarray,
    aux: pd.DataFrame,
) -> dict[str, np.ndarray]:
    """
    Align one auxiliary frame to the primary bars.

    Each auxiliary row is a period that opens at its timestamp. At every
    primary bar the visible period is the latest one with
    open timestamp <= primary timestamp.

    Args:
        primary_ts: Primary timestamps (UTC).
        primary_high: Primary highs.
        primary_low: Primary lows.
        aux: Auxiliary frame with timestamp/open/high/low.

    Returns:
        Dict of arrays, one value per primary bar:
            idx: Visible auxiliary index (-1 before the first period).
            open: Open of the visible period.
            high, low: Running extremes of the visible period so far.
            prev_high, prev_low: Extremes of the period before it (NaN if none).
    """
    _require_columns(aux, AUX_COLUMNS, "auxiliary")
    aux_ts = _utc_timestamps(aux, "auxiliary")

    pos = np.searchsorted(_as_ns(aux_ts), _as_ns(primary_ts), side="right") - 1
    has_bar = pos >= 0
    has_prev = pos >= 1

    aux_open = aux["open"].to_numpy(dtype=float)
    aux_high = aux["high"].to_numpy(dtype=float)
    aux_low = aux["low"].to_numpy(dtype=float)

    safe = np.where(has_bar, pos, 0)
    safe_prev = np.where(has_prev, pos - 1, 0)

    # Periods are contiguous because pos never decreases
    running_high = pd.Series(primary_high).groupby(pos).cummax().to_numpy(dtype=float)
    running_low = pd.Series(primary_low).groupby(pos).cummin().to_numpy(dtype=float)

    return {
        "idx": pos,
        "open": np.where(has_bar, aux_open[safe], np.nan),
        "high": np.where(has_bar, running_high, np.nan),
        "low": np.where(has_bar, running_low, np.nan),
        "prev_high": np.where(has_prev, aux_high[safe_prev], np.nan),
        "prev_low": np.where(has_prev, aux_low[safe_prev], np.nan),
    }


def _optional(value: float) -> float | None:
    return None if np.isnan(value) else float(value)


def run_levels_batch(
    primary: pd.DataFrame,
    aux_frames: dict[str, pd.DataFrame] | None = None,
    config: KeyLevelsConfig | None = None,
) -> pd.DataFrame:
    """
    Replay the aggregator over a primary frame.

    Args:
        primary: Frame with timestamp (column or index), open, high, low, close.
        aux_frames: Auxiliary frames keyed by timeframe ("D", "W", "M", "12M").
        config: Key levels configuration (defaults if None).

    Returns:
        Frame on primary's index with one price column per level tag
        (NaN while unpublished) and a nullable integer "<tag>_anchor" column.
    """
    _require_columns(primary, PRIMARY_COLUMNS, "primary")
    ts = _utc_timestamps(primary, "primary")

    high = primary["high"].to_numpy(dtype=float)
    low = primary["low"].to_numpy(dtype=float)
    opens = primary["open"].to_numpy(dtype=float)
    closes = primary["close"].to_numpy(dtype=float)
    volume = (
        primary["volume"].to_numpy(dtype=float)
        if "volume" in primary.columns
        else np.zeros(len(primary))
    )

    views = {
        validate_aux_tf(tf): build_aux_view(ts, high, low, frame)
        for tf, frame in (aux_frames or {}).items()
    }

    aggregator = LevelSnapshotAggregator(config)
    tags = aggregator.level_tags
    n_bars = len(primary)
    prices = {tag: np.full(n_bars, np.nan) for tag in tags}
    anchors: dict[str, list[int | None]] = {tag: [None] * n_bars for tag in tags}

    timestamps = ts.to_pydatetime()
    for i in range(n_bars):
        bar = BarData(
            idx=i,
            timestamp=timestamps[i],
            open=float(opens[i]),
            high=float(high[i]),
            low=float(low[i]),
            close=float(closes[i]),
            volume=float(volume[i]),
        )
        aux = {
            tf: AuxBarData(
                idx=int(view["idx"][i]),
                open=float(view["open"][i]),
                high=float(view["high"][i]),
                low=float(view["low"][i]),
                prev_high=_optional(view["prev_high"][i]),
                prev_low=_optional(view["prev_low"][i]),
            )
            for tf, view in views.items()
            if view["idx"][i] >= 0
        }

        published = aggregator.on_bar(bar, aux)
        for level in published:
            prices[level.tag][i] = level.price
            anchors[level.tag][i] = level.anchor_idx

    columns: dict[str, pd.Series] = {}
    for tag in tags:
        columns[tag] = pd.Series(prices[tag], index=primary.index, dtype=float)
        columns[f"{tag}_anchor"] = pd.Series(anchors[tag], index=primary.index, dtype="Int64")
    return pd.DataFrame(columns, index=primary.index)
