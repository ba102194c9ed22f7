import asyncio

import pytest

from signage.scheduler import SchedulerError, SchedulerService


def test_create_pause_resume_delete():
    service = SchedulerService()

    async def action():
        return None

    async def scenario():
        await service.start()
        try:
            handle = service.create("get_weather_1", 60, "seconds", action)
            assert service.exists("get_weather_1")
            assert handle.paused is False

            handle.pause()
            assert handle.paused is True
            job = service.status()["jobs"][0]
            assert job["id"] == "get_weather_1"
            assert job["paused"] is True

            handle.resume()
            assert handle.paused is False
            assert service.status()["jobs"][0]["next_run"] is not None

            service.delete("get_weather_1")
            assert not service.exists("get_weather_1")
            service.delete("get_weather_1")
        finally:
            await service.stop()

    asyncio.run(scenario())
    assert service.started is False


def test_creating_same_name_replaces_task():
    service = SchedulerService()

    async def scenario():
        await service.start()
        try:
            service.create("task", 10, "seconds", lambda: None)
            service.create("task", 20, "seconds", lambda: None)
            return service.status()
        finally:
            await service.stop()

    status = asyncio.run(scenario())
    assert [job["id"] for job in status["jobs"]] == ["task"]
    assert status["running"] is True


def test_handle_survives_deleted_job():
    service = SchedulerService()

    async def scenario():
        await service.start()
        try:
            handle = service.create("task", 10, "seconds", lambda: None)
            service.delete("task")
            handle.pause()
            handle.resume()
            return handle
        finally:
            await service.stop()

    handle = asyncio.run(scenario())
    assert handle.paused is False


def test_periodic_action_runs():
    service = SchedulerService()
    calls = []

    async def action():
        calls.append(1)

    async def scenario():
        await service.start()
        try:
            service.create("fast", 0.05, "seconds", action)
            await asyncio.sleep(0.3)
        finally:
            await service.stop()

    asyncio.run(scenario())
    assert calls


@pytest.mark.parametrize("interval, unit", [(10, "fortnights"), (0, "seconds"), (-1, "minutes")])
def test_invalid_schedule_rejected(interval, unit):
    with pytest.raises(SchedulerError):
        SchedulerService().create("bad", interval, unit, lambda: None)
