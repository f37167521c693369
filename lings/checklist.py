"""Grading every exercise at once and recording the results as JSON."""

from __future__ import annotations

import json
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Iterable

from .exercise import Exercise
from .run import RunFailed, run

RESULT_PATH = ".github/result/check_result.json"


@dataclass
class ExerciseResult:
    """Whether one exercise passed."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals over a grading run; total_time is in seconds."""

    total_exercations: int = 0
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The results of a grading run, in the order the exercises finished."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(default_factory=ExerciseStatistics)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        """Serialise as indented JSON."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def record(self, name: str, result: bool) -> None:
        """Append a result and update the success or failure count."""
        self.exercises.append(ExerciseResult(name=name, result=result))
        if result:
            self.statistics.total_succeeds += 1
        else:
            self.statistics.total_failures += 1


def cicv_verify(
    exercises: Iterable[Exercise],
    result_path: str | os.PathLike[str] = RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise concurrently, print progress and write the results file."""
    exercises = list(exercises)
    started = int(time.time())
    total = len(exercises)
    checklist = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()

    def grade(exercise: Exercise, task_start: int) -> None:
        try:
            run(exercise, True)
            passed = True
        except RunFailed:
            passed = False
        with lock:
            checklist.record(exercise.name, passed)
            status = "执行成功" if passed else "执行失败"
            print(f"{exercise.name}{status}")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {checklist.statistics.total_succeeds}")
            print(f"当前修改试卷耗时: {int(time.time()) - task_start} s")

    if exercises:
        with ThreadPoolExecutor() as pool:
            futures = [
                pool.submit(grade, exercise, int(time.time())) for exercise in exercises
            ]
            for future in futures:
                future.result()

    total_time = int(time.time()) - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    checklist.statistics.total_time = total_time
    Path(result_path).write_text(checklist.to_json(), encoding="utf-8")
    return checklist