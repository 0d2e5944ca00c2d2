"""Tests for the event channel."""

import threading

from quizgen.models.events import BatchStarted, ErrorEvent, Heartbeat, QuestionProgress
from quizgen.streaming.channel import EventChannel


def _progress(objective_id: str, status: str = "started") -> QuestionProgress:
    return QuestionProgress(
        objective_id=objective_id, status=status, objective_index=1, total_objectives=1
    )


class TestEventChannel:
    """Test publish/consume behavior."""

    def test_events_in_publish_order(self):
        """Test that events come out in the order they went in."""
        channel = EventChannel()
        published = [_progress("lo-1"), _progress("lo-1", "completed"), _progress("lo-2")]

        for event in published:
            channel.publish(event)
        channel.finish()

        assert list(channel) == published

    def test_publish_after_finish_is_dropped(self):
        """Test that nothing is queued once the producer finished."""
        channel = EventChannel()
        channel.finish()

        assert channel.publish(_progress("lo-1")) is False
        assert list(channel) == []

    def test_close_signals_cancellation(self):
        """Test that the consumer closing is visible to the producer."""
        channel = EventChannel()

        channel.close()

        assert channel.closed
        assert channel.publish(_progress("lo-1")) is False

    def test_heartbeat_while_idle(self):
        """Test that an idle stream yields heartbeats."""
        channel = EventChannel()
        events = channel.events(heartbeat_interval=0.01)

        assert isinstance(next(events), Heartbeat)

        channel.publish(ErrorEvent(message="late", error_type="generation-error"))
        channel.finish()
        remaining = [e for e in events if not isinstance(e, Heartbeat)]
        assert [e.message for e in remaining] == ["late"]

    def test_cross_thread_delivery(self):
        """Test a producer thread feeding a consumer."""
        channel = EventChannel()

        def produce():
            channel.publish(BatchStarted(quiz_id="q", total_objectives=2, total_questions=4))
            channel.publish(_progress("lo-1"))
            channel.finish()

        thread = threading.Thread(target=produce)
        thread.start()
        received = list(channel.events(heartbeat_interval=1.0))
        thread.join()

        assert [e.event for e in received if not isinstance(e, Heartbeat)] == [
            "batch-started",
            "question-progress",
        ]
        assert channel.finished

    def test_drain_does_not_block(self):
        """Test draining whatever is queued so far."""
        channel = EventChannel()
        channel.publish(_progress("lo-1"))

        assert len(channel.drain()) == 1
        assert channel.drain() == []
