"""Tests for component start/stop guards."""

from dataclasses import dataclass

import pytest

from svcprobe import Startable, Stoppable, guard_lifecycle, lifecycle


class Component:
    def __init__(self, start_error=None, stop_error=None):
        self.start_error = start_error
        self.stop_error = stop_error
        self.calls = []

    def start(self):
        self.calls.append("start")
        if self.start_error:
            raise self.start_error

    def stop(self):
        self.calls.append("stop")
        if self.stop_error:
            raise self.stop_error


class OnlyStop:
    def __init__(self):
        self.stopped = 0

    def stop(self):
        self.stopped += 1


@dataclass
class Schedule:
    start: int
    stop: int


class TestGuardLifecycle:
    """Test guard_lifecycle with an explicit cleanup list."""

    def test_start_and_stop(self):
        """The component is started now and stopped by the cleanup."""
        component = Component()
        cleanups = []
        guard_lifecycle(component, cleanups.append)
        assert component.calls == ["start"]
        assert len(cleanups) == 1
        cleanups[0]()
        assert component.calls == ["start", "stop"]

    def test_protocols(self):
        """Components are recognized by their methods."""
        assert isinstance(Component(), Startable)
        assert isinstance(Component(), Stoppable)
        assert not isinstance(OnlyStop(), Startable)
        assert not isinstance(object(), Stoppable)

    def test_start_error(self):
        """A failing start fails the test and registers nothing."""
        component = Component(start_error=RuntimeError("port in use"))
        cleanups = []
        with pytest.raises(pytest.fail.Exception, match="Start\\(\\) error:\n.*port in use"):
            guard_lifecycle(component, cleanups.append)
        assert cleanups == []

    def test_stop_error(self):
        """A failing stop fails the test."""
        component = Component(stop_error=RuntimeError("still busy"))
        stop = guard_lifecycle(component, lambda fn: None)
        with pytest.raises(pytest.fail.Exception, match="Stop\\(\\) error:\n.*still busy"):
            stop()

    def test_stop_once(self):
        """Calling the stop action again does nothing."""
        component = OnlyStop()
        stop = guard_lifecycle(component, lambda fn: None)
        stop()
        stop()
        assert component.stopped == 1

    def test_plain_object(self):
        """Objects without start or stop are accepted."""
        cleanups = []
        guard_lifecycle(object(), cleanups.append)
        cleanups[0]()

    def test_non_callable_attributes(self):
        """Data fields named start or stop are not lifecycle methods."""
        component = Schedule(start=8, stop=18)
        cleanups = []
        guard_lifecycle(component, cleanups.append)
        cleanups[0]()
        assert component == Schedule(start=8, stop=18)


class TestStartStopContext:
    """Test the context manager form."""

    def test_stops_on_exit(self):
        """The component is stopped when the block ends."""
        with lifecycle.start_stop(Component()) as component:
            assert component.calls == ["start"]
        assert component.calls == ["start", "stop"]

    def test_stops_on_error(self):
        """The component is stopped when the block raises."""
        component = Component()
        with pytest.raises(KeyError):
            with lifecycle.start_stop(component):
                raise KeyError("boom")
        assert component.calls == ["start", "stop"]


class TestStartStopFixture:
    """Test the plugin fixture."""

    component = Component()

    def test_started(self, start_stop):
        """The fixture starts the component at once."""
        assert start_stop(self.component) is self.component
        assert self.component.calls == ["start"]

    def test_stopped_after_previous_test(self):
        """The previous test's finalizer stopped the component."""
        assert self.component.calls == ["start", "stop"]
