import asyncio

import pytest

from signage.widgets import (
    Lifecycle,
    TimelineSlot,
    Widget,
    WidgetState,
    WidgetStateError,
    WidgetTransitionError,
)


def _widget(**config) -> Widget:
    widget = Widget(1, 2)
    widget.id = 42
    widget.type = "general"
    widget.set_name("Lobby")
    for key, value in config.items():
        widget.add_configuration_metadata(key, value)
    return widget


def test_new_widget_defaults():
    widget = Widget()
    assert widget.state is WidgetState.CREATED
    assert widget.duration == 10
    assert widget.priority == 0
    assert widget.minimum_loop_time == 10
    assert widget.has_content_to_play is True
    assert widget.is_paused is True
    assert not widget.initialized
    assert isinstance(widget, Lifecycle)


def test_full_lifecycle():
    widget = _widget()

    async def scenario():
        await widget.initialize()
        assert widget.state is WidgetState.STOPPED
        assert widget.wrapper is not None
        await widget.play()
        assert widget.state is WidgetState.PLAYING
        assert widget.is_paused is False
        await widget.pause()
        assert widget.state is WidgetState.PAUSED
        await widget.play()
        assert widget.state is WidgetState.PLAYING
        await widget.stop()
        assert widget.state is WidgetState.STOPPED

    asyncio.run(scenario())


def test_play_before_initialize_is_rejected():
    widget = _widget()
    with pytest.raises(WidgetStateError):
        asyncio.run(widget.play())
    assert widget.state is WidgetState.CREATED


def test_initialize_twice_is_rejected():
    widget = _widget()

    async def scenario():
        await widget.initialize()
        with pytest.raises(WidgetStateError):
            await widget.initialize()

    asyncio.run(scenario())
    assert widget.state is WidgetState.STOPPED


def test_pause_is_noop_unless_playing():
    widget = _widget()

    async def scenario():
        await widget.pause()
        assert widget.state is WidgetState.CREATED
        await widget.initialize()
        await widget.pause()
        assert widget.state is WidgetState.STOPPED

    asyncio.run(scenario())


def test_stop_is_idempotent_and_ignored_before_initialize():
    widget = _widget()

    async def scenario():
        await widget.stop()
        assert widget.state is WidgetState.CREATED
        await widget.initialize()
        await widget.play()
        await widget.stop()
        await widget.stop()
        assert widget.state is WidgetState.STOPPED

    asyncio.run(scenario())


def test_stop_clears_rendered_content():
    widget = _widget()

    async def scenario():
        await widget.initialize()
        widget.wrapper.replace("<p>hello</p>")
        await widget.play()
        await widget.stop()

    asyncio.run(scenario())
    assert widget.wrapper.children == []


def test_overlapping_transition_is_rejected():
    class SlowWidget(Widget):
        async def _do_play(self, current_slot):
            await asyncio.sleep(0.05)

    widget = SlowWidget()
    widget.id = 1

    async def scenario():
        await widget.initialize()
        first = asyncio.create_task(widget.play())
        await asyncio.sleep(0)
        with pytest.raises(WidgetTransitionError):
            await widget.stop()
        await first

    asyncio.run(scenario())
    assert widget.state is WidgetState.PLAYING


def test_render_target_reflects_configuration():
    widget = _widget(width=1080, height=1920, x=10, y=20, z=3, css=".a{}")
    widget.custom_css_class = "dark"
    target = widget.create_render_target()

    assert target.element_id == "widget_42"
    assert target.css_classes == ["widget", "widget-general", "general", "custom-general-dark"]
    assert target.style == {
        "width": "1080px",
        "height": "1920px",
        "z-index": "3",
        "left": "10px",
        "top": "20px",
    }
    assert target.inline_css == [".a{}"]
    assert target.layout_type == "portrait"


def test_layout_defaults_to_landscape():
    widget = _widget()
    assert widget.get_layout_type() == "landscape"
    asyncio.run(widget.initialize())
    assert widget.get_layout_type() == "landscape"


def test_set_name_escapes_quotes():
    widget = _widget()
    widget.set_name('Say "hi"')
    assert widget.name == 'Say "hi"'
    assert widget.safe_name == 'Say \\"hi\\"'


def test_fade_out_cancelled_for_same_widget():
    widget = _widget()
    other = _widget()
    other.id = 7
    current = TimelineSlot(widget=widget, duration=10)

    same = asyncio.run(widget.before_fade_out(current, TimelineSlot(widget=widget, duration=5)))
    different = asyncio.run(widget.before_fade_out(current, TimelineSlot(widget=other, duration=5)))
    last = asyncio.run(widget.before_fade_out(current, None))

    assert same.cancel_fade is True
    assert different.cancel_fade is False
    assert last.cancel_fade is False


def test_recheck_for_content_reports_flag():
    widget = _widget()
    widget.has_content_to_play = False
    assert asyncio.run(widget.recheck_for_content()) is False


def test_pause_from_paused_is_noop():
    class CountingWidget(Widget):
        pauses = 0

        async def _do_pause(self, current_slot):
            self.pauses += 1

    widget = CountingWidget()
    widget.id = 3

    async def scenario():
        await widget.initialize()
        await widget.play()
        await widget.pause()
        await widget.pause()

    asyncio.run(scenario())
    assert widget.state is WidgetState.PAUSED
    assert widget.pauses == 1


def test_dispose_stops_and_releases():
    class TrackingWidget(Widget):
        disposed = False

        async def _do_dispose(self):
            self.disposed = True

    widget = TrackingWidget()
    widget.id = 4

    async def scenario():
        await widget.initialize()
        await widget.play()
        widget.wrapper.replace("<p>bye</p>")
        await widget.dispose()

    asyncio.run(scenario())
    assert widget.state is WidgetState.STOPPED
    assert widget.wrapper.children == []
    assert widget.disposed is True
