"""Tests for TimelineManager: CRUD, notifications, joins and totals."""
from __future__ import annotations

import logging

import pytest

from taskline_lite.domain.interval import Interval
from taskline_lite.domain.segment import Segment, interval_sum
from taskline_lite.index.config import IndexConfig
from taskline_lite.timeline.events import NO_CHANGE
from taskline_lite.timeline.manager import TimelineManager

HOUR = 3600.0


class TestCreate:
    def test_create_segment(self, timeline, recorder, date_range):
        seg = timeline.create_segment(1, date_range("10:00", "11:00"))
        assert seg.task_id == 1
        assert seg.range == date_range("10:00", "11:00")
        assert timeline.segment_by_id(seg.id) == seg
        assert len(timeline) == 1
        assert recorder.results[0].added == (seg,)

    def test_ids_are_unique_and_increasing(self, timeline, date_range):
        ids = [timeline.create_segment(1, date_range("10:00", "11:00")).id for _ in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5

    def test_id_never_reused_after_removing_highest(self, timeline, date_range):
        a = timeline.create_segment(1, date_range("10:00", "11:00"))
        b = timeline.create_segment(1, date_range("11:00", "12:00"))
        timeline.remove_segment(b.id)
        c = timeline.create_segment(1, date_range("12:00", "13:00"))
        assert c.id not in (a.id, b.id)
        assert c.id > b.id

    def test_ids_continue_after_loaded_segments(self, date_range):
        loaded = [Segment(40, 1, date_range("08:00", "09:00"))]
        timeline = TimelineManager(loaded)
        assert timeline.create_segment(1, date_range("10:00", "11:00")).id == 41

    def test_add_segments_batch(self, timeline, recorder, date_range):
        segs = [
            Segment(1, 1, date_range("10:00", "11:00")),
            Segment(2, 2, date_range("12:00", "13:00")),
        ]
        result = timeline.add_segments(segs)
        assert result.added == tuple(segs)
        assert len(recorder.calls) == 1
        assert timeline.add_segments([]) is NO_CHANGE
        assert len(recorder.calls) == 1

    def test_duplicate_id_rejected(self, timeline, date_range):
        timeline.add_segment(Segment(1, 1, date_range("10:00", "11:00")))
        with pytest.raises(ValueError, match="Duplicate segment id 1"):
            timeline.add_segment(Segment(1, 2, date_range("12:00", "13:00")))
        assert len(timeline) == 1

    def test_duplicate_within_batch_rejected(self, timeline, date_range):
        segs = [
            Segment(5, 1, date_range("10:00", "11:00")),
            Segment(5, 1, date_range("12:00", "13:00")),
        ]
        with pytest.raises(ValueError):
            timeline.add_segments(segs)
        assert len(timeline) == 0

    def test_construct_from_segments(self, date_range):
        segs = [
            Segment(1, 1, date_range("10:00", "11:00")),
            Segment(2, 1, date_range("09:00", "09:30")),
        ]
        timeline = TimelineManager(segs, config=IndexConfig(max_depth=2, max_count_before_split=1))
        assert set(timeline.segments) == set(segs)
        assert 2 in timeline
        assert timeline.index.config.max_depth == 2


class TestSetSegmentDates:
    def test_set_dates_change_notification(self, timeline, recorder, date_range):
        rng = date_range("10:00", "11:00")
        seg = timeline.create_segment(1, rng)
        recorder.calls.clear()

        # no changes
        result = timeline.set_segment_dates(seg.id, start=rng.start, end=rng.end)
        assert result.is_empty
        assert recorder.calls == []

        # new end
        result = timeline.set_segment_dates(seg.id, start=rng.start, end=rng.end + 1)
        assert len(recorder.calls) == 1
        assert result.updated[0].range == Interval(rng.start, rng.end + 1)
        assert timeline.segment_by_id(seg.id).range.end == rng.end + 1

    def test_both_none_is_noop(self, timeline, recorder, date_range):
        seg = timeline.create_segment(1, date_range("10:00", "11:00"))
        recorder.calls.clear()
        assert timeline.set_segment_dates(seg.id) is NO_CHANGE
        assert recorder.calls == []

    def test_unknown_id_is_noop(self, timeline, recorder, at):
        assert timeline.set_segment_dates(999, end=at("12:00")).is_empty
        assert recorder.calls == []

    def test_only_start(self, timeline, date_range, at):
        seg = timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.set_segment_dates(seg.id, start=at("10:30"))
        assert timeline.segment_by_id(seg.id).range == date_range("10:30", "11:00")

    def test_move_beyond_bound_grows_index(self, timeline, date_range, at):
        seg = timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(1, date_range("11:00", "12:00"))
        timeline.set_segment_dates(seg.id, end=at("18:00"))
        assert timeline.index.bound.end == at("18:00")
        assert timeline.segment_at(at("17:00")).id == seg.id

    def test_inverted_range_raises_and_keeps_state(self, timeline, recorder, date_range, at):
        seg = timeline.create_segment(1, date_range("10:00", "11:00"))
        recorder.calls.clear()
        with pytest.raises(ValueError):
            timeline.set_segment_dates(seg.id, start=at("12:00"))
        assert timeline.segment_by_id(seg.id) == seg
        assert recorder.calls == []


class TestChangeTask:
    def test_change_task_reports_update(self, timeline, recorder, date_range):
        seg = timeline.create_segment(1, date_range("10:00", "11:00"))
        recorder.calls.clear()
        result = timeline.change_task(seg.id, 2)
        assert result.updated == (seg.with_task(2),)
        assert timeline.segments_for_task(2) == [seg.with_task(2)]
        assert timeline.segments_for_task(1) == []
        assert len(recorder.calls) == 1

    def test_same_task_is_noop(self, timeline, recorder, date_range):
        seg = timeline.create_segment(1, date_range("10:00", "11:00"))
        recorder.calls.clear()
        assert timeline.change_task(seg.id, 1).is_empty
        assert timeline.change_task(999, 1).is_empty
        assert recorder.calls == []


class TestRemove:
    def test_remove_unknown_id(self, timeline, recorder, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        recorder.calls.clear()
        assert timeline.remove_segment(999) is NO_CHANGE
        assert recorder.calls == []
        assert len(timeline) == 1

    def test_remove_segment(self, timeline, recorder, date_range):
        seg = timeline.create_segment(1, date_range("10:00", "11:00"))
        result = timeline.remove_segment(seg.id)
        assert result.removed == (seg,)
        assert result.removed_ids == {seg.id}
        assert seg.id not in timeline
        assert timeline.segment_by_id(seg.id) is None

    def test_remove_segments_for_task(self, timeline, recorder, date_range):
        a = timeline.create_segment(1, date_range("10:00", "11:00"))
        b = timeline.create_segment(1, date_range("12:00", "13:00"))
        c = timeline.create_segment(2, date_range("10:30", "11:30"))
        recorder.calls.clear()

        result = timeline.remove_segments_for_task(1)
        assert result.removed_ids == {a.id, b.id}
        assert timeline.segments == [c]
        assert len(recorder.calls) == 1
        assert timeline.remove_segments_for_task(1).is_empty
        assert len(recorder.calls) == 1

    def test_remove_all(self, timeline, recorder, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(2, date_range("12:00", "13:00"))
        recorder.calls.clear()

        result = timeline.remove_all()
        assert len(result.removed) == 2
        assert len(timeline) == 0
        assert timeline.segments == []
        assert timeline.remove_all().is_empty
        assert len(recorder.calls) == 1


class TestJoin:
    def test_join_segments_overlapped(self, timeline, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(1, date_range("10:00", "11:30"))
        assert interval_sum(timeline.segments_for_task(1)) == 2.5 * HOUR

        timeline.join_connected_segments(1)

        segs = timeline.segments_for_task(1)
        assert interval_sum(segs) == 1.5 * HOUR
        assert len(segs) == 1
        assert segs[0].range == date_range("10:00", "11:30")

    def test_join_segments_at_edge(self, timeline, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(1, date_range("11:00", "12:00"))

        timeline.join_connected_segments(1)

        segs = timeline.segments_for_task(1)
        assert len(segs) == 1
        assert segs[0].range == date_range("10:00", "12:00")

    def test_join_segments_at_edge_multiple(self, timeline, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(1, date_range("11:00", "12:00"))
        timeline.create_segment(1, date_range("12:00", "13:00"))

        timeline.join_connected_segments(1)

        segs = timeline.segments_for_task(1)
        assert interval_sum(segs) == 3 * HOUR
        assert len(segs) == 1

    def test_join_segments_no_intersection(self, timeline, recorder, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(1, date_range("12:00", "13:00"))
        recorder.calls.clear()

        assert timeline.join_connected_segments(1).is_empty
        assert len(timeline.segments_for_task(1)) == 2
        assert recorder.calls == []

    def test_join_result_and_survivor_id(self, timeline, recorder, date_range):
        # created out of order: the survivor is the earliest-starting one
        late = timeline.create_segment(1, date_range("10:30", "12:00"))
        early = timeline.create_segment(1, date_range("10:00", "11:00"))
        recorder.calls.clear()

        result = timeline.join_connected_segments(1)
        assert result.removed == (late,)
        assert result.updated == (early.with_range(date_range("10:00", "12:00")),)
        assert len(recorder.calls) == 1

    def test_join_is_idempotent(self, timeline, recorder, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(1, date_range("10:30", "11:30"))
        timeline.join_connected_segments(1)
        recorder.calls.clear()

        assert timeline.join_connected_segments(1).is_empty
        assert recorder.calls == []

    def test_join_leaves_other_tasks_alone(self, timeline, date_range):
        other = timeline.create_segment(2, date_range("10:30", "11:30"))
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(1, date_range("11:00", "12:00"))
        timeline.join_connected_segments(1)
        assert timeline.segments_for_task(2) == [other]

    def test_join_logs_summary(self, timeline, date_range, caplog):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(1, date_range("11:00", "12:00"))
        with caplog.at_level(logging.DEBUG, logger="taskline_lite.timeline.manager"):
            timeline.join_connected_segments(1)
        assert "joined segments of task 1" in caplog.text


class TestTotals:
    def test_total_time_overlapping(self, timeline, date_range):
        timeline.create_segment(1, date_range("10:00", "11:30"))
        timeline.create_segment(1, date_range("11:00", "12:30"))

        assert timeline.total_time(1, with_overlap=True) == 3 * HOUR
        assert timeline.total_time(1) == 2.5 * HOUR

    def test_total_time_overlapping_sequential(self, timeline, date_range):
        timeline.create_segment(1, date_range("10:00", "11:30"))
        timeline.create_segment(1, date_range("11:00", "12:30"))
        timeline.create_segment(1, date_range("12:00", "13:30"))
        timeline.create_segment(1, date_range("13:00", "14:30"))

        assert timeline.total_time(1, with_overlap=True) == 6 * HOUR
        assert timeline.total_time(1) == 4.5 * HOUR

    def test_total_time_per_task_and_overall(self, timeline, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(2, date_range("10:30", "11:30"))

        assert timeline.total_time(1) == HOUR
        assert timeline.total_time(2) == HOUR
        assert timeline.total_time() == 1.5 * HOUR
        assert timeline.total_time(with_overlap=True) == 2 * HOUR
        assert timeline.total_time(3) == 0.0

    def test_gaps_per_task(self, timeline, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        timeline.create_segment(2, date_range("11:00", "12:00"))
        timeline.create_segment(1, date_range("13:00", "14:00"))

        assert timeline.gaps_between_coverage(1) == [date_range("11:00", "13:00")]
        assert timeline.gaps_between_coverage() == [date_range("12:00", "13:00")]
        assert timeline.merged_coverage_ranges() == [
            date_range("10:00", "12:00"),
            date_range("13:00", "14:00"),
        ]


class TestQueries:
    @pytest.fixture
    def filled(self, timeline, date_range):
        return [
            timeline.create_segment(1, date_range("09:00", "10:00")),
            timeline.create_segment(1, date_range("10:00", "11:00")),
            timeline.create_segment(2, date_range("12:00", "13:00")),
        ]

    def test_segments_in_range_inclusive(self, timeline, filled, date_range):
        found = timeline.segments_in_range(date_range("10:00", "12:00"))
        assert set(found) == set(filled)

    def test_segments_ending_before_is_strict(self, timeline, filled, at):
        assert timeline.segments_ending_before(at("10:00")) == []
        assert timeline.segments_ending_before(at("10:01")) == [filled[0]]

    def test_segments_starting_after_is_strict(self, timeline, filled, at):
        assert timeline.segments_starting_after(at("12:00")) == []
        assert set(timeline.segments_starting_after(at("09:00"))) == {filled[1], filled[2]}

    def test_segment_at(self, timeline, filled, at):
        assert timeline.segment_at(at("12:30")) == filled[2]
        assert timeline.segment_at(at("11:30")) is None

    def test_earliest_and_latest(self, timeline, filled, at):
        assert timeline.earliest_date() == at("09:00")
        assert timeline.latest_date() == at("13:00")

    def test_empty_timeline(self, timeline, at):
        assert timeline.earliest_date() is None
        assert timeline.latest_date() is None
        assert timeline.segment_at(at("10:00")) is None
        assert timeline.total_time() == 0.0
        assert timeline.merged_coverage_ranges() == []

    def test_repr(self, timeline, filled):
        assert repr(timeline) == "TimelineManager(segments=3)"


class TestSubscribe:
    def test_listener_receives_manager_and_result(self, timeline, recorder, date_range):
        timeline.create_segment(1, date_range("10:00", "11:00"))
        manager, result = recorder.calls[0]
        assert manager is timeline
        assert len(result.added) == 1

    def test_unsubscribe(self, timeline, date_range):
        calls = []
        unsubscribe = timeline.subscribe(lambda m, r: calls.append(r))
        timeline.create_segment(1, date_range("10:00", "11:00"))
        unsubscribe()
        unsubscribe()  # second call is harmless
        timeline.create_segment(1, date_range("11:00", "12:00"))
        assert len(calls) == 1

    def test_listener_sees_state_after_change(self, timeline, date_range):
        seen = []
        timeline.subscribe(lambda m, r: seen.append(len(m)))
        timeline.create_segment(1, date_range("10:00", "11:00"))
        assert seen == [1]
