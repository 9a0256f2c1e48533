"""
HTTP client and smoke test for a running YouTube Analyzer service.

Usage:
    video-analyzer-smoke [base_url] [--video-url URL]
"""

import argparse
import os
import sys
import time
from typing import Any

import requests
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"
SMOKE_VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
TERMINAL_STATUSES = {"completed", "error"}


class AnalyzerClient:
    """Simple HTTP client for the analyzer API."""

    def __init__(self, base_url: str | None = None):
        """Initialize the API client.

        Args:
            base_url: Service URL. If None, reads from ANALYZER_URL env var.
        """
        self.base_url = (base_url or os.getenv("ANALYZER_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.session = requests.Session()

    def health_check(self) -> tuple[bool, dict[str, Any]]:
        """Check if the service is healthy.

        Returns:
            (is_healthy, health_data)
        """
        try:
            response = self.session.get(f"{self.base_url}/health", timeout=5)
            response.raise_for_status()
            return True, response.json()
        except requests.exceptions.RequestException as e:
            logger.warning("Health check failed", error=str(e))
            return False, {"error": str(e)}

    def submit(self, video_url: str) -> tuple[bool, str]:
        """Submit a video for analysis.

        Returns:
            (success, task_id_or_error)
        """
        try:
            response = self.session.post(
                f"{self.base_url}/analyze", json={"url": video_url}, timeout=60
            )
        except requests.exceptions.RequestException as e:
            logger.error("Submission failed", error=str(e))
            return False, f"Submission failed: {e}"

        data = _json_or_empty(response)
        if response.status_code != 200:
            error = data.get("error") or f"HTTP {response.status_code}"
            logger.error("Submission rejected", status_code=response.status_code, error=error)
            return False, error

        return True, data["task_id"]

    def get_result(self, task_id: str) -> tuple[bool, dict[str, Any]]:
        """Get the current task value.

        Returns:
            (success, task_data)
        """
        try:
            response = self.session.get(f"{self.base_url}/result/{task_id}", timeout=10)
            response.raise_for_status()
            return True, response.json()
        except requests.exceptions.RequestException as e:
            logger.error("Result lookup failed", task_id=task_id, error=str(e))
            return False, {"error": f"Failed to get result: {e}"}

    def poll_until_complete(
        self,
        task_id: str,
        poll_interval: float = 10.0,
        timeout: float = 600.0,
    ) -> tuple[bool, dict[str, Any]]:
        """Poll a task until it is completed, errored or the timeout passes.

        Returns:
            (completed_successfully, final_task_data)
        """
        deadline = time.monotonic() + timeout
        data: dict[str, Any] = {}

        while time.monotonic() < deadline:
            ok, data = self.get_result(task_id)
            if not ok:
                return False, data

            status = data.get("status")
            logger.info("Polled task", task_id=task_id, status=status, progress=data.get("progress"))
            if status in TERMINAL_STATUSES:
                return status == "completed", data

            time.sleep(poll_interval)

        return False, {**data, "error": f"Timed out after {timeout:.0f}s"}


def _json_or_empty(response: requests.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Smoke test a YouTube Analyzer service")
    parser.add_argument("base_url", nargs="?", default=None)
    parser.add_argument("--video-url", default=SMOKE_VIDEO_URL)
    parser.add_argument("--poll-interval", type=float, default=10.0)
    parser.add_argument("--timeout", type=float, default=600.0)
    args = parser.parse_args(argv)

    client = AnalyzerClient(args.base_url)
    logger.info("Testing YouTube Analyzer service", base_url=client.base_url)

    healthy, health = client.health_check()
    if not healthy:
        logger.error("Service is not healthy", **health)
        return 1

    ok, task_id = client.submit(args.video_url)
    if not ok:
        return 1

    completed, result = client.poll_until_complete(
        task_id, poll_interval=args.poll_interval, timeout=args.timeout
    )
    if not completed:
        logger.error("Analysis did not complete", task_id=task_id, error=result.get("error"))
        return 1

    segments = (result.get("transcript") or {}).get("segments") or []
    logger.info(
        "Analysis completed",
        task_id=task_id,
        screenshot=result.get("screenshot_path"),
        segments=len(segments),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
