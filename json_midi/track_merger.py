"""json_midi.track_merger

Merges the per-track event lists of a decoded file into one chronological
sequence.

Every merged event carries a tick delta measured from the previous event of
the *merged* sequence, so the consumer can run a single clock over the
result without knowing where each event came from. The merge is lazy: events
are produced one at a time as the caller pulls them.
"""
import heapq
import logging
from itertools import accumulate
from operator import attrgetter
from typing import Iterator, NamedTuple, Sequence

from .events import Payload, RawTrackEvent, TrackLayout
from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)


class MergedEvent(NamedTuple):
    """An event positioned in the merged sequence.

    Attributes:
        delta_ticks: Ticks since the previous merged event.
        track: Index of the track the event was read from.
        payload: The decoded payload, passed through untouched.
    """
    delta_ticks: int
    track: int
    payload: Payload


class _AbsoluteEvent(NamedTuple):
    absolute_tick: int
    track: int
    event: RawTrackEvent


def merge_tracks(layout: TrackLayout, tracks: Sequence[Sequence[RawTrackEvent]]) -> Iterator[MergedEvent]:
    """Return a lazy merged view over the tracks for the given layout.

    Args:
        layout: Track layout from the file header.
        tracks: Ordered per-track event sequences. They are only read.

    Returns:
        An iterator of MergedEvent in playback order.

    Raises:
        InvalidInputError: If layout is not a TrackLayout.

    Example:
        >>> merged = merge_tracks(TrackLayout.SIMULTANEOUS, decoded.tracks)
        >>> first = next(merged)
        >>> first.delta_ticks, first.track
        (0, 0)
    """
    logger.debug("Merging %d track(s) in %s mode", len(tracks), getattr(layout, 'value', layout))
    if layout is TrackLayout.SINGLE:
        return _single(tracks)
    elif layout is TrackLayout.SEQUENTIAL:
        return _sequential(tracks)
    elif layout is TrackLayout.SIMULTANEOUS:
        return _simultaneous(tracks)
    raise InvalidInputError(f"Unknown track layout: {layout!r}",
                            parameter_name='layout', expected='TrackLayout')


def _single(tracks: Sequence[Sequence[RawTrackEvent]]) -> Iterator[MergedEvent]:
    # format 0 files hold exactly one track; anything after it is ignored
    if not tracks:
        return
    for ev in tracks[0]:
        yield MergedEvent(ev.delta_ticks, 0, ev.payload)


def _sequential(tracks: Sequence[Sequence[RawTrackEvent]]) -> Iterator[MergedEvent]:
    # the first delta of each track already counts from the end of the previous one
    for ti, track in enumerate(tracks):
        for ev in track:
            yield MergedEvent(ev.delta_ticks, ti, ev.payload)


def _absolute(track_index: int, track: Sequence[RawTrackEvent]) -> Iterator[_AbsoluteEvent]:
    ticks = accumulate(ev.delta_ticks for ev in track)
    for tick, ev in zip(ticks, track):
        yield _AbsoluteEvent(tick, track_index, ev)


def _simultaneous(tracks: Sequence[Sequence[RawTrackEvent]]) -> Iterator[MergedEvent]:
    # heapq.merge is stable: equal ticks come out in the order the tracks are listed
    merged = heapq.merge(*(_absolute(ti, track) for ti, track in enumerate(tracks)),
                         key=attrgetter('absolute_tick'))
    previous_tick = 0
    for item in merged:
        yield MergedEvent(item.absolute_tick - previous_tick, item.track, item.event.payload)
        previous_tick = item.absolute_tick
