"""
Transcript segment helpers.

Segments are the unit of AI detection. Some transcription responses only carry
word-level entries; for those, segments are derived by grouping consecutive
words until the speaker changes or a sentence ends.
"""

from typing import Any

SENTENCE_END = (".", "?", "!")
SPACING = "spacing"
AUDIO_EVENT = "audio_event"


def ensure_segments(transcript: dict[str, Any]) -> dict[str, Any]:
    """Return ``transcript`` with a ``segments`` list when one can be built.

    Existing segments are left untouched. The input dict is not modified.
    """
    if transcript.get("segments") is not None:
        return transcript

    words = transcript.get("words")
    if not isinstance(words, list) or not words:
        return transcript

    return {**transcript, "segments": segments_from_words(words)}


def segments_from_words(words: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Group word entries into timed, speaker-attributed segments."""
    has_spacing = any(word.get("type") == SPACING for word in words)
    segments: list[dict[str, Any]] = []
    current: list[dict[str, Any]] = []

    def flush() -> None:
        tokens = [w for w in current if w.get("type") != SPACING]
        if tokens:
            segments.append(_build_segment(current, tokens, has_spacing))
        current.clear()

    for word in words:
        kind = word.get("type", "word")
        if kind == AUDIO_EVENT:
            continue
        if kind != SPACING and current:
            previous = next(
                (w for w in reversed(current) if w.get("type") != SPACING), None
            )
            if previous is not None and (
                previous.get("speaker_id") != word.get("speaker_id")
                or str(previous.get("text", "")).rstrip().endswith(SENTENCE_END)
            ):
                flush()
        current.append(word)

    flush()
    return segments


def _build_segment(
    entries: list[dict[str, Any]],
    tokens: list[dict[str, Any]],
    has_spacing: bool,
) -> dict[str, Any]:
    if has_spacing:
        text = "".join(str(entry.get("text", "")) for entry in entries)
    else:
        text = " ".join(str(token.get("text", "")).strip() for token in tokens)

    segment: dict[str, Any] = {
        "start": tokens[0].get("start"),
        "end": tokens[-1].get("end"),
        "text": text.strip(),
    }
    speaker = tokens[0].get("speaker_id")
    if speaker is not None:
        segment["speaker"] = speaker
    return segment


def has_text(segment: dict[str, Any]) -> bool:
    text = segment.get("text")
    return isinstance(text, str) and bool(text.strip())
