"""
Active conversation time heuristic.

Time spent while the assistant is working always counts. Time between an
assistant reply and the next user message counts only when it is shorter
than an idle threshold derived from the session's own reply gaps: the 95th
percentile of assistant-to-user intervals, never below ten minutes.
"""

import math
from typing import List, Optional, Sequence

from runlog.core.constants import IDLE_PERCENTILE, MIN_IDLE_THRESHOLD_MS
from runlog.core.models import EntryType, LogEntry, timestamp_millis


def idle_threshold(reply_gaps: Sequence[int]) -> int:
    """
    Threshold above which a user reply gap counts as time away.

    The percentile index is clamped to the last gap when it falls out of
    range, or when the gap found there is zero.
    """
    if not reply_gaps:
        return MIN_IDLE_THRESHOLD_MS

    ordered = sorted(reply_gaps)
    index = math.floor(len(ordered) * IDLE_PERCENTILE)
    value = ordered[index] if index < len(ordered) else None
    threshold = value or ordered[-1]
    return max(threshold, MIN_IDLE_THRESHOLD_MS)


def calculate_active_time(entries: List[LogEntry]) -> int:
    """
    Estimate engaged time in milliseconds.

    Args:
        entries: Qualifying (non administrative) entries of one conversation

    Returns:
        Total active time, 0 for fewer than two entries
    """
    if len(entries) < 2:
        return 0

    times = [entry.event_time for entry in entries]
    order = sorted(range(len(entries)), key=lambda i: timestamp_millis(times[i]))
    timeline = [(entries[i].type, times[i]) for i in order]

    pairs = []
    for (prev_type, prev_time), (curr_type, curr_time) in zip(timeline, timeline[1:]):
        interval = _interval(prev_time, curr_time)
        if interval is not None:
            pairs.append((prev_type, curr_type, interval))

    reply_gaps = [
        interval for prev_type, curr_type, interval in pairs
        if prev_type == EntryType.ASSISTANT and curr_type == EntryType.USER
    ]
    threshold = idle_threshold(reply_gaps)

    total = 0
    for _, curr_type, interval in pairs:
        if curr_type == EntryType.ASSISTANT:
            total += interval
        elif curr_type == EntryType.USER and interval < threshold:
            total += interval

    return total


def _interval(start, end) -> Optional[int]:
    if start is None or end is None:
        return None
    return timestamp_millis(end) - timestamp_millis(start)
