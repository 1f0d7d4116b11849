"""Column signal detection for row/column inference"""
import re
from typing import List, Optional, Union

from pagebuilder.models import AnalyzedElement
from pagebuilder.analyzer.styles import parse_percent, split_top_level

GRID_COLUMNS = 12
EQUAL = "equal"

SIZED_COLUMN = re.compile(r"^col(?:-(?:xs|sm|md|lg|xl|xxl))?-(\d{1,2})$", re.IGNORECASE)
BARE_COLUMN = re.compile(r"^(?:col|column)$", re.IGNORECASE)
REPEAT = re.compile(r"^repeat\(\s*(\d+)\s*,\s*(.+)\)$", re.IGNORECASE)

Signal = Optional[Union[float, str]]


def class_signal(element: AnalyzedElement) -> Signal:
    """
    Width signal from classes: `col-N`/`col-<bp>-N` give N/12 of the row, a
    bare `col`/`column` asks for an equal share. With several sized classes
    (`col-12 col-md-6`) the last one is the desktop width.
    """
    sized = []
    equal = False
    for cls in element.classes:
        match = SIZED_COLUMN.match(cls)
        if match and 0 < int(match.group(1)) <= GRID_COLUMNS:
            sized.append(int(match.group(1)))
        elif BARE_COLUMN.match(cls):
            equal = True
    if sized:
        return round(sized[-1] / GRID_COLUMNS * 100, 2)
    if equal:
        return EQUAL
    return None


def width_signal(element: AnalyzedElement) -> Signal:
    percent = parse_percent(element.styles.width)
    if percent is not None and 0 < percent <= 100:
        return round(percent, 2)
    return None


def grid_tracks(element: AnalyzedElement) -> List[float]:
    """
    Track widths (percent of the row) declared by a grid container.

    Supports `repeat(N, ...)`, fr lists and percentage lists; any other track
    definition yields no tracks.
    """
    styles = element.styles
    if (styles.display or "") not in ("grid", "inline-grid") or not styles.gridTemplateColumns:
        return []

    template = styles.gridTemplateColumns.strip()
    match = REPEAT.match(template)
    if match:
        count = int(match.group(1))
        return [round(100 / count, 2)] * count if count > 0 else []

    tokens = split_top_level(template)
    if tokens and all(t.endswith("fr") for t in tokens):
        try:
            fractions = [float(t[:-2]) for t in tokens]
        except ValueError:
            return []
        total = sum(fractions)
        return [round(f / total * 100, 2) for f in fractions] if total > 0 else []
    if tokens and all(parse_percent(t) is not None for t in tokens):
        return [round(parse_percent(t), 2) for t in tokens]
    return []


def column_signals(element: AnalyzedElement) -> List[Signal]:
    """One signal per element child, None where the child carries none."""
    tracks = grid_tracks(element)
    signals: List[Signal] = []
    for index, child in enumerate(element.children):
        signal = class_signal(child)
        if signal is None:
            signal = width_signal(child)
        if signal is None and tracks:
            signal = tracks[index % len(tracks)]
        signals.append(signal)
    return signals


def resolve_sizes(signals: List[Signal]) -> List[float]:
    """Turn signals into sizes: explicit sizes stay, equal shares split what remains."""
    explicit = [s for s in signals if s != EQUAL]
    equal_count = len(signals) - len(explicit)
    if not equal_count:
        return [float(s) for s in signals]

    remaining = 100 - sum(explicit)
    share = round(remaining / equal_count, 2) if remaining > 0 else round(100 / len(signals), 2)
    return [share if s == EQUAL else float(s) for s in signals]


def partition_rows(sizes: List[float], track_count: int = 0) -> List[List[int]]:
    """
    Group child indexes into rows that each fill at most 100%.

    A grid with `track_count` tracks breaks every `track_count` children.
    """
    rows: List[List[int]] = []
    current: List[int] = []
    total = 0.0
    for index, size in enumerate(sizes):
        full = track_count and len(current) == track_count
        if current and (full or total + size > 100.01):
            rows.append(current)
            current, total = [], 0.0
        current.append(index)
        total += size
    if current:
        rows.append(current)
    return rows
