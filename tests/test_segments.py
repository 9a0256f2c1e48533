"""Tests for deriving transcript segments from word-level output."""

from video_analyzer.pipeline.segments import ensure_segments, has_text, segments_from_words


def word(text, start, end, speaker="speaker_0", kind="word"):
    return {"text": text, "start": start, "end": end, "type": kind, "speaker_id": speaker}


def spacing(start, end, speaker="speaker_0"):
    return word(" ", start, end, speaker, kind="spacing")


class TestEnsureSegments:
    def test_existing_segments_are_kept(self, sample_transcript):
        assert ensure_segments(sample_transcript) is sample_transcript

    def test_transcript_without_words_is_unchanged(self):
        transcript = {"text": "hello"}
        assert ensure_segments(transcript) == {"text": "hello"}

    def test_segments_added_without_mutating_input(self):
        transcript = {"text": "Hi.", "words": [word("Hi.", 0.0, 0.4)]}
        result = ensure_segments(transcript)

        assert "segments" not in transcript
        assert result["text"] == "Hi."
        assert result["segments"] == [
            {"start": 0.0, "end": 0.4, "text": "Hi.", "speaker": "speaker_0"}
        ]


class TestSegmentsFromWords:
    def test_split_on_sentence_end_and_speaker_change(self):
        words = [
            word("Hello", 0.0, 0.3),
            spacing(0.3, 0.35),
            word("there.", 0.35, 0.8),
            spacing(0.8, 0.9),
            word("How", 0.9, 1.1),
            spacing(1.1, 1.15),
            word("are", 1.15, 1.3),
            word("Fine", 1.5, 1.8, speaker="speaker_1"),
            spacing(1.8, 1.85, speaker="speaker_1"),
            word("thanks", 1.85, 2.2, speaker="speaker_1"),
        ]

        segments = segments_from_words(words)

        assert [s["text"] for s in segments] == ["Hello there.", "How are", "Fine thanks"]
        assert [s["speaker"] for s in segments] == ["speaker_0", "speaker_0", "speaker_1"]
        assert segments[0]["start"] == 0.0 and segments[0]["end"] == 0.8
        assert segments[2]["start"] == 1.5 and segments[2]["end"] == 2.2

    def test_audio_events_are_skipped(self):
        words = [
            word("Hi.", 0.0, 0.3),
            {"text": "(laughter)", "start": 0.3, "end": 1.0, "type": "audio_event"},
            word("Bye.", 1.0, 1.3),
        ]

        assert [s["text"] for s in segments_from_words(words)] == ["Hi.", "Bye."]

    def test_words_without_spacing_entries_are_joined(self):
        words = [
            {"text": "one", "start": 0.0, "end": 0.2},
            {"text": "two", "start": 0.2, "end": 0.4},
        ]

        segments = segments_from_words(words)

        assert segments == [{"start": 0.0, "end": 0.4, "text": "one two"}]


def test_has_text():
    assert has_text({"text": "words"})
    assert not has_text({"text": "   "})
    assert not has_text({"text": None})
    assert not has_text({})
