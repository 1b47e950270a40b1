from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .errors import MigrationError, PathSafetyViolation, SizeLimitExceeded


@dataclass
class Failure:
    item: str
    code: str
    message: str


@dataclass
class RunReport:
    """Tally of one batch; any failure turns the exit code to 1."""

    name: str
    total: int = 0
    successes: int = 0
    skipped: int = 0
    failures: List[Failure] = field(default_factory=list)
    rejections: List[Failure] = field(default_factory=list)

    def ok(self) -> None:
        self.total += 1
        self.successes += 1

    def skip(self) -> None:
        self.total += 1
        self.skipped += 1

    def reject(self, item: object, exc: MigrationError) -> None:
        self.skip()
        self.rejections.append(Failure(item=str(item), code=exc.code, message=str(exc)))
        print(f"! skipping {item}: {exc}")

    def fail(self, item: object, exc: MigrationError) -> None:
        self.total += 1
        self.failures.append(Failure(item=str(item), code=exc.code, message=str(exc)))
        print(f"! {item}: {exc}")

    def merge(self, other: "RunReport") -> None:
        self.total += other.total
        self.successes += other.successes
        self.skipped += other.skipped
        self.failures.extend(other.failures)
        self.rejections.extend(other.rejections)

    def record(self, item: object, exc: MigrationError) -> None:
        if isinstance(exc, (PathSafetyViolation, SizeLimitExceeded)):
            self.reject(item, exc)
        else:
            self.fail(item, exc)

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0

    def summary(self) -> str:
        return (
            f"{self.name}: {self.total} items, {self.successes} ok, "
            f"{self.skipped} skipped, {len(self.failures)} failed"
        )
