from collections.abc import Iterator
from itertools import accumulate

import pytest

from json_midi.events import ChannelMessage, NOTE_ON, RawTrackEvent, TrackLayout
from json_midi.exceptions import InvalidInputError
from json_midi.track_merger import merge_tracks


def note(delta, n=60):
    return RawTrackEvent(delta, ChannelMessage(NOTE_ON, 0, (n, 64)))


def notes_of(merged):
    return [ev.payload.data[0] for ev in merged]


def test_single_uses_first_track_only():
    tracks = ([note(0, 60), note(10, 61)], [note(5, 70)])
    merged = list(merge_tracks(TrackLayout.SINGLE, tracks))
    assert [ev.delta_ticks for ev in merged] == [0, 10]
    assert notes_of(merged) == [60, 61]
    assert {ev.track for ev in merged} == {0}


def test_single_without_tracks_is_empty():
    assert list(merge_tracks(TrackLayout.SINGLE, [])) == []


def test_sequential_concatenates_with_original_deltas():
    tracks = ([note(0, 60), note(10, 61)], [note(5, 62), note(3, 63)])
    merged = list(merge_tracks(TrackLayout.SEQUENTIAL, tracks))
    assert [ev.delta_ticks for ev in merged] == [0, 10, 5, 3]
    assert [ev.track for ev in merged] == [0, 0, 1, 1]
    assert notes_of(merged) == [60, 61, 62, 63]


def test_simultaneous_recomputes_deltas_and_breaks_ties_by_track():
    t0 = [note(0, 60), note(10, 61), note(10, 62)]   # 0, 10, 20
    t1 = [note(5, 70), note(5, 71), note(10, 72)]    # 5, 10, 20
    merged = list(merge_tracks(TrackLayout.SIMULTANEOUS, (t0, t1)))

    assert notes_of(merged) == [60, 70, 61, 71, 62, 72]
    assert [ev.track for ev in merged] == [0, 1, 0, 1, 0, 1]
    assert [ev.delta_ticks for ev in merged] == [0, 5, 5, 0, 10, 0]


def test_simultaneous_first_delta_is_measured_from_tick_zero():
    merged = list(merge_tracks(TrackLayout.SIMULTANEOUS, ([note(7, 60)], [note(3, 70)])))
    assert [(ev.track, ev.delta_ticks) for ev in merged] == [(1, 3), (0, 4)]


def test_simultaneous_keeps_per_track_order_on_equal_ticks():
    t0 = [note(0, 60), note(0, 61)]
    t1 = [note(0, 70)]
    t2 = [note(0, 80), note(0, 81)]
    merged = list(merge_tracks(TrackLayout.SIMULTANEOUS, (t0, t1, t2)))
    assert notes_of(merged) == [60, 61, 70, 80, 81]


@pytest.mark.parametrize('layout', list(TrackLayout))
def test_delta_sum_matches_last_absolute_tick(layout):
    t0 = [note(0), note(96), note(48), note(0), note(200)]
    t1 = [note(30), note(30), note(500)]
    t2 = [note(1000)]
    tracks = (t0, t1, t2)

    merged = list(merge_tracks(layout, tracks))
    ticks = list(accumulate(ev.delta_ticks for ev in merged))
    assert sum(ev.delta_ticks for ev in merged) == ticks[-1]
    assert ticks == sorted(ticks)

    contributing = tracks[:1] if layout is TrackLayout.SINGLE else tracks
    assert len(merged) == sum(len(t) for t in contributing)


def test_simultaneous_end_tick_is_longest_track():
    t0 = [note(0), note(100)]
    t1 = [note(50), note(300)]
    merged = list(merge_tracks(TrackLayout.SIMULTANEOUS, (t0, t1)))
    assert sum(ev.delta_ticks for ev in merged) == 350


def test_merge_is_lazy_and_leaves_input_untouched():
    t0 = (note(0, 60), note(10, 61))
    t1 = (note(5, 70),)
    merged = merge_tracks(TrackLayout.SIMULTANEOUS, (t0, t1))
    assert isinstance(merged, Iterator)

    first = next(merged)
    assert first.payload.data[0] == 60
    assert t0 == (note(0, 60), note(10, 61))
    assert t1 == (note(5, 70),)


def test_unknown_layout_is_rejected():
    with pytest.raises(InvalidInputError):
        merge_tracks('parallel', [[note(0)]])
