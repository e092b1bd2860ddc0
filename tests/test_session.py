"""Tests for timer session metadata and keyboard shortcuts."""

import pytest

from timeflow.core.models import TimerPhase
from timeflow.core.session import TimerSession
from timeflow.core.timer import TimerEngine

from fakes import FakeClock


@pytest.fixture
def session(engine: TimerEngine) -> TimerSession:
    return TimerSession(engine)


class TestName:
    """Test entry name validation."""

    def test_short_name_has_no_error(self, session: TimerSession) -> None:
        session.name = "Homepage layout review"
        assert session.name_error is None

    def test_name_at_limit_is_valid(self, session: TimerSession) -> None:
        session.name = "x" * 80
        assert session.name_error is None

    def test_long_name_is_flagged_not_blocked(self, session: TimerSession) -> None:
        """Test an over-long name produces a message but is kept."""
        session.name = "x" * 81

        assert session.name_error == "Name is too long (max 80 characters)."
        assert len(session.name) == 81

    def test_custom_limit(self, engine: TimerEngine) -> None:
        session = TimerSession(engine, name="abcdef", name_max_length=5)
        assert session.name_error == "Name is too long (max 5 characters)."


class TestTags:
    """Test tag commit and removal."""

    def test_commit_is_case_insensitive_and_idempotent(self, session: TimerSession) -> None:
        """Test committing "Foo, foo bar" onto {"bar"} yields {"bar", "foo"}."""
        session.commit_tags("bar")
        session.commit_tags("Foo, foo bar")

        assert session.tags == ["bar", "foo"]

    def test_commit_uses_and_clears_input_buffer(self, session: TimerSession) -> None:
        session.tag_input = "  Web,,  Design  "
        tags = session.commit_tags()

        assert tags == ["web", "design"]
        assert session.tag_input == ""

    def test_commit_blank_input(self, session: TimerSession) -> None:
        session.tag_input = " , ,  "
        assert session.commit_tags() == []
        assert session.tag_input == ""

    def test_recommit_is_noop(self, session: TimerSession) -> None:
        session.commit_tags("a b c")
        session.commit_tags("C, b")
        assert session.tags == ["a", "b", "c"]

    def test_remove_tag_exact_match(self, session: TimerSession) -> None:
        session.commit_tags("web webdev")
        session.remove_tag("web")
        session.remove_tag("WEBDEV")

        assert session.tags == ["webdev"]

    def test_initial_tags_are_normalized(self, engine: TimerEngine) -> None:
        session = TimerSession(engine, tags=["Design", "design", "UX"])
        assert session.tags == ["design", "ux"]


class TestShortcuts:
    """Test keyboard dispatch."""

    def test_space_toggles(self, session: TimerSession) -> None:
        assert session.handle_key(" ") is True
        assert session.engine.phase is TimerPhase.RUNNING

        assert session.handle_key(" ") is True
        assert session.engine.phase is TimerPhase.PAUSED

    def test_lap_only_while_running(self, session: TimerSession, clock: FakeClock) -> None:
        assert session.handle_key("l") is False
        assert session.engine.laps == ()

        session.handle_key(" ")
        clock.advance(700)
        assert session.handle_key("L") is True
        assert [lap.at_ms for lap in session.engine.laps] == [700]

    def test_reset_key(self, session: TimerSession, clock: FakeClock) -> None:
        session.handle_key(" ")
        clock.advance(100)
        session.handle_key("r")

        assert session.engine.phase is TimerPhase.IDLE
        assert session.engine.elapsed() == 0

    def test_stop_key(self, session: TimerSession, clock: FakeClock) -> None:
        session.handle_key(" ")
        clock.advance(100)
        session.handle_key("s")

        assert session.engine.phase is TimerPhase.PAUSED
        assert session.engine.accumulated_ms == 100

    def test_keys_ignored_while_typing(self, session: TimerSession) -> None:
        """Test shortcuts do nothing while a text-entry control has focus."""
        for key in (" ", "l", "r", "s"):
            assert session.handle_key(key, text_entry_focused=True) is False

        assert session.engine.phase is TimerPhase.IDLE

    def test_unknown_key(self, session: TimerSession) -> None:
        assert session.handle_key("x") is False
