"""Grading every exercise at once and recording the results as JSON."""

from __future__ import annotations

import json
import os
import threading
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from .exercise import Exercise
from .run import run
from .verify import VerificationFailed

DEFAULT_RESULT_PATH = ".github/result/check_result.json"


@dataclass
class ExerciseResult:
    """Whether one exercise passed."""

    name: str
    result: bool

    def to_dict(self) -> dict:
        return {"name": self.name, "result": self.result}


@dataclass
class ExerciseStatistics:
    """Totals for a grading run; total_time is in seconds."""

    total_exercations: int = 0
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0

    def to_dict(self) -> dict:
        return {
            "total_exercations": self.total_exercations,
            "total_succeeds": self.total_succeeds,
            "total_failures": self.total_failures,
            "total_time": self.total_time,
        }


@dataclass
class ExerciseCheckList:
    """Results of grading all exercises."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(default_factory=ExerciseStatistics)

    def to_dict(self) -> dict:
        return {
            "exercises": [result.to_dict() for result in self.exercises],
            "user_name": self.user_name,
            "statistics": self.statistics.to_dict(),
        }

    def to_json(self) -> str:
        """Pretty-printed JSON with two-space indentation."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def _now() -> int:
    return int(time.time())


def check_all(
    exercises: Iterable[Exercise],
    output_path: str | os.PathLike = DEFAULT_RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise concurrently, write the results to output_path and return them."""
    exercises = list(exercises)
    started = _now()
    total = len(exercises)
    checklist = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()

    def grade(exercise: Exercise) -> None:
        begun = _now()
        try:
            run(exercise, True)
            passed = True
        except VerificationFailed:
            passed = False
        with lock:
            if passed:
                checklist.statistics.total_succeeds += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {checklist.statistics.total_succeeds}")
            print(f"当前修改试卷耗时: {_now() - begun} s")
            checklist.exercises.append(ExerciseResult(name=exercise.name, result=passed))
            if not passed:
                checklist.statistics.total_failures += 1

    with ThreadPoolExecutor() as pool:
        for _ in pool.map(grade, exercises):
            pass

    total_time = _now() - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    checklist.statistics.total_time = total_time
    Path(output_path).write_text(checklist.to_json(), encoding="utf-8")
    return checklist