"""Unit tests for step sequencing."""
import pytest

from webpanel.core.exceptions import ConflictError, ExternalToolError
from webpanel.core.steps import BEST_EFFORT, FATAL, Step, failed_steps, run_steps


def _fail(message="broken"):
    def action():
        raise RuntimeError(message)

    return action


class TestRunSteps:
    """Tests for fatal and best-effort step policies."""

    def test_best_effort_failure_does_not_stop_the_sequence(self, logger):
        calls = []
        steps = [
            Step("first", lambda: calls.append("first")),
            Step("optional", _fail(), BEST_EFFORT),
            Step("last", lambda: calls.append("last") or "done"),
        ]

        outcomes = run_steps("example.com", steps, logger)

        assert calls == ["first", "last"]
        assert [o["status"] for o in outcomes] == ["ok", "failed", "ok"]
        assert outcomes[1]["error"] == "broken"
        assert outcomes[2]["result"] == "done"
        assert failed_steps(outcomes) == ["optional"]

    def test_fatal_failure_stops_and_wraps_the_error(self, logger):
        calls = []
        steps = [
            Step("write file", _fail("disk full")),
            Step("never", lambda: calls.append("never")),
        ]

        with pytest.raises(ExternalToolError) as exc_info:
            run_steps("example.com", steps, logger)

        assert str(exc_info.value) == "write file failed: disk full"
        assert calls == []

    def test_panel_errors_propagate_unchanged(self, logger):
        error = ConflictError("Site already exists")

        def action():
            raise error

        with pytest.raises(ConflictError) as exc_info:
            run_steps("example.com", [Step("check", action, FATAL)], logger)

        assert exc_info.value is error

    def test_unknown_policy_is_rejected(self):
        with pytest.raises(ValueError):
            Step("bad", lambda: None, "sometimes")
