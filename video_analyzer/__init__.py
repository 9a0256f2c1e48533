"""YouTube analyzer service: screenshot, transcribe and AI-detect a video."""
