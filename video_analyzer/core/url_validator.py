"""YouTube URL pre-filter."""

import re

YOUTUBE_URL_PATTERN = re.compile(
    r"^(https?://)?(www\.)?(youtube\.com|youtu\.be)/.+",
    re.IGNORECASE,
)


def is_valid_youtube_url(url: str) -> bool:
    """Return True if ``url`` points at a recognised YouTube host.

    Accepts ``youtube.com`` with or without ``www.``, and ``youtu.be`` short
    links, with or without an http(s) scheme. This does not check that the
    video exists.
    """
    if not isinstance(url, str):
        return False
    return YOUTUBE_URL_PATTERN.match(url) is not None
