"""Unit tests for TranscriptBuffer."""

import pytest

from rollscribe.models.transcription import TranscriptSnapshot
from rollscribe.transcript.buffer import TranscriptBuffer
from rollscribe.transcript.publisher import TranscriptPublisher


@pytest.fixture
def recorder(transcript_buffer, message_recorder):
    return message_recorder(transcript_buffer.publisher.topic, "snapshot")


@pytest.mark.unit
class TestTranscriptBuffer:
    """Test cases for TranscriptBuffer."""

    def test_starts_empty(self, transcript_buffer):
        assert transcript_buffer.finalized_text == ""
        assert transcript_buffer.partial_text == ""
        assert transcript_buffer.snapshot() == TranscriptSnapshot()

    def test_append_final_adds_separator(self, transcript_buffer):
        assert transcript_buffer.append_final("hello world") is True
        assert transcript_buffer.append_final("again") is True

        assert transcript_buffer.finalized_text == "hello world again "

    def test_custom_separator(self, unique_topic):
        buffer = TranscriptBuffer(separator="\n", publisher=TranscriptPublisher(unique_topic("transcript")))
        buffer.append_final("line one")
        buffer.append_final("line two")

        assert buffer.finalized_text == "line one\nline two\n"

    @pytest.mark.parametrize("text", ["", "   ", "\n"])
    def test_append_final_ignores_empty_text(self, transcript_buffer, recorder, text):
        assert transcript_buffer.append_final(text) is False
        assert transcript_buffer.finalized_text == ""
        assert recorder.messages == []

    def test_set_partial_replaces_wholesale(self, transcript_buffer):
        transcript_buffer.set_partial("hel")
        transcript_buffer.set_partial("hello")

        assert transcript_buffer.partial_text == "hello"
        assert transcript_buffer.finalized_text == ""

    def test_clear_partial(self, transcript_buffer):
        transcript_buffer.set_partial("hello")
        transcript_buffer.clear_partial()

        assert transcript_buffer.partial_text == ""

    def test_flush_partial_commits_once(self, transcript_buffer):
        transcript_buffer.set_partial("こんにちは")

        assert transcript_buffer.flush_partial() is True
        assert transcript_buffer.flush_partial() is False

        assert transcript_buffer.finalized_text == "こんにちは "
        assert transcript_buffer.partial_text == ""

    def test_flush_partial_blank_clears_without_append(self, transcript_buffer):
        transcript_buffer.set_partial("  ")

        assert transcript_buffer.flush_partial() is False
        assert transcript_buffer.finalized_text == ""
        assert transcript_buffer.partial_text == ""

    def test_user_edit_survives_later_appends(self, transcript_buffer):
        transcript_buffer.append_final("helo wrld")
        transcript_buffer.edit_finalized("Hello world. ")
        transcript_buffer.append_final("next")

        assert transcript_buffer.finalized_text == "Hello world. next "

    def test_reset_clears_everything(self, transcript_buffer):
        transcript_buffer.append_final("one")
        transcript_buffer.set_partial("two")
        transcript_buffer.reset()

        assert transcript_buffer.snapshot() == TranscriptSnapshot()

    def test_observers_notified_on_every_mutation(self, transcript_buffer, recorder):
        transcript_buffer.set_partial("hello")
        transcript_buffer.append_final("hello world")
        transcript_buffer.clear_partial()
        transcript_buffer.edit_finalized("edited ")

        assert recorder.messages == [
            TranscriptSnapshot(finalized_text="", partial_text="hello"),
            TranscriptSnapshot(finalized_text="hello world ", partial_text="hello"),
            TranscriptSnapshot(finalized_text="hello world ", partial_text=""),
            TranscriptSnapshot(finalized_text="edited ", partial_text=""),
        ]

    def test_clearing_empty_partial_does_not_notify(self, transcript_buffer, recorder):
        transcript_buffer.clear_partial()

        assert recorder.messages == []

    def test_publisher_subscribe_and_unsubscribe(self, transcript_buffer):
        received = []

        class Listener:
            def on_snapshot(self, snapshot):
                received.append(snapshot)

        listener = Listener()
        transcript_buffer.publisher.subscribe(listener.on_snapshot)
        transcript_buffer.set_partial("heard")
        transcript_buffer.publisher.unsubscribe(listener.on_snapshot)
        transcript_buffer.set_partial("unheard")

        assert received == [TranscriptSnapshot(finalized_text="", partial_text="heard")]
