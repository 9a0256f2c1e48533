"""Durable JSON copy of finished tasks."""

import asyncio
import json
import os
from pathlib import Path

import structlog

from video_analyzer.core.task_store import Task, TaskStatus

logger = structlog.get_logger(__name__)


class JsonResultWriter:
    """Write ``<results_dir>/<task_id>.json`` for finished tasks.

    Completed tasks are always written. Errored tasks are written only when
    ``persist_failures`` is set. Existing records are replaced atomically.
    """

    def __init__(self, results_dir: Path, persist_failures: bool = False) -> None:
        self.results_dir = results_dir
        self.persist_failures = persist_failures

    def path_for(self, task_id: str) -> Path:
        return self.results_dir / f"{task_id}.json"

    async def write(self, task: Task) -> Path | None:
        if task.status == TaskStatus.ERROR and not self.persist_failures:
            return None
        if not task.status.is_terminal:
            raise ValueError(f"Refusing to persist unfinished task {task.id}")

        path = self.path_for(task.id)
        await asyncio.to_thread(self._write_json, path, task.to_dict())

        logger.info("Result persisted", task_id=task.id, path=str(path))
        return path

    @staticmethod
    def _write_json(path: Path, data: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as fp:
            json.dump(data, fp, indent=2, ensure_ascii=False, default=str)
        os.replace(tmp_path, path)


class NullResultWriter:
    """Result writer used when persistence is disabled."""

    async def write(self, task: Task) -> Path | None:
        return None
