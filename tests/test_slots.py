import pytest

from signage.widgets import Widget


def _widget(duration=10) -> Widget:
    widget = Widget()
    widget.id = 5
    widget.set_name("Menu board")
    widget.duration = duration
    return widget


def test_query_content_returns_single_slot():
    widget = _widget(duration=12)
    slots = widget.query_content()

    assert len(slots) == 1
    assert slots[0].duration == 12
    assert slots[0].widget is widget
    assert slots[0].params is None
    assert slots[0].group_identifier is None
    assert widget.timeline_slots == slots


def test_query_slots_limited_by_count():
    slots = _widget().query_slots(3, 100)
    assert [slot.duration for slot in slots] == [10, 10, 10]


def test_query_slots_limited_by_max_duration():
    slots = _widget().query_slots(10, 35)
    assert len(slots) == 3


def test_query_slots_exact_fit_is_filled():
    assert len(_widget().query_slots(5, 30)) == 3


def test_query_slots_max_duration_smaller_than_duration():
    assert _widget().query_slots(4, 9.5) == []


def test_query_slots_zero_requested():
    assert _widget().query_slots(0, 100) == []


def test_query_slots_non_positive_duration_gives_nothing():
    assert _widget(duration=0).query_slots(3, 100) == []
    assert _widget(duration=-5).query_slots(3, 100) == []


def test_generate_slot_with_group():
    widget = _widget()
    slot = widget.generate_slot(8, {"page": 2}, group_id=3)

    assert slot.duration == 8
    assert slot.params == {"page": 2}
    assert slot.group_identifier == "widget_5_Menu board_group_3"


def test_generate_slot_empty_group_is_ignored():
    widget = _widget()
    assert widget.generate_slot(8, group_id="").group_identifier is None
    assert widget.generate_slot(8, group_id=0).group_identifier == "widget_5_Menu board_group_0"


def test_query_slots_uses_floor_of_ratio():
    slots = _widget(duration=0.1).query_slots(100, 1.0)
    assert len(slots) == 10
    assert sum(slot.duration for slot in slots) <= 1.0


def test_query_slots_fractional_duration():
    slots = _widget(duration=2.5).query_slots(10, 11)
    assert len(slots) == 4
    assert sum(slot.duration for slot in slots) <= 11


@pytest.mark.parametrize(
    "duration, num_slots, max_duration",
    [(0.3, 50, 0.9), (0.7, 20, 2.1), (1.1, 9, 9.9), (3.3, 5, 10), (0.25, 8, 1.9)],
)
def test_query_slots_total_never_exceeds_max(duration, num_slots, max_duration):
    slots = _widget(duration=duration).query_slots(num_slots, max_duration)
    assert len(slots) <= num_slots
    assert sum(slot.duration for slot in slots) <= max_duration
    assert slots
