"""Test doubles shared by the runner tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from tandem.runner import Interpreter, Result, Runner, RunMode, Slot, Test
from tandem.runner.job import Job


@dataclass
class Plan:
    """What a fake job does: how many polls it stays alive, how it ends."""

    result: Result = Result.PASSED
    polls: int = 0
    message: str | None = None


@dataclass
class Tracker:
    """Records scheduling activity across every fake job of a run."""

    dispatched: list[str] = field(default_factory=list)
    modes: list[RunMode] = field(default_factory=list)
    slots: list[int] = field(default_factory=list)
    active: dict[str, int] = field(default_factory=dict)
    max_active: int = 0
    slot_clashes: int = 0

    def started(self, name: str, slot: int) -> None:
        if slot in self.active.values():
            self.slot_clashes += 1
        self.active[name] = slot
        self.max_active = max(self.max_active, len(self.active))

    def stopped(self, name: str) -> None:
        self.active.pop(name, None)


class FakeJob(Job):
    """Job that never spawns a process; liveness follows its Plan."""

    def __init__(self, test: Test, plan: Plan, tracker: Tracker) -> None:
        super().__init__(test, Interpreter())
        self.plan = plan
        self.tracker = tracker
        self.on_poll: list = []
        self._remaining = plan.polls
        self._live = False

    def run(self, mode: RunMode = RunMode.SYNC, slot: Slot | None = None) -> None:
        self._slot = slot
        self.tracker.dispatched.append(self.test.file.stem)
        self.tracker.modes.append(mode)
        self.tracker.slots.append(slot.index if slot else 0)
        self.tracker.started(self.test.file.stem, slot.index if slot else 0)
        self._live = mode is RunMode.ASYNC and self._remaining > 0
        if not self._live:
            self.tracker.stopped(self.test.file.stem)

    def is_running(self) -> bool:
        for hook in self.on_poll:
            hook(self)
        if self._live and self._remaining > 0:
            self._remaining -= 1
            return True
        if self._live:
            self._live = False
            self.tracker.stopped(self.test.file.stem)
        return False


class FakeHandler:
    """Stands in for TestHandler: one FakeJob per discovered file."""

    __test__ = False

    def __init__(self, runner: Runner, plans: dict[str, Plan] | None = None) -> None:
        self.runner = runner
        self.plans = plans or {}
        self.tracker = Tracker()
        self.jobs: dict[str, FakeJob] = {}
        self.poll_hooks: list = []

    def initiate(self, file: Path) -> None:
        test = Test(file=file)
        self.runner.prepare_test(test)
        job = FakeJob(test, self.plans.get(file.stem, Plan()), self.tracker)
        job.on_poll = self.poll_hooks
        self.jobs[file.stem] = job
        self.runner.add_job(job)

    def assess(self, job: FakeJob) -> None:
        test = job.test.complete(job.plan.result, message=job.plan.message, duration=0.0)
        self.runner.finish_test(test)


class RecordingOutput:
    """Output sink that appends every notification to a shared list."""

    def __init__(self, name: str, events: list[tuple[str, ...]]) -> None:
        self.name = name
        self.events = events

    def begin(self) -> None:
        self.events.append((self.name, "begin"))

    def prepare(self, test: Test) -> None:
        self.events.append((self.name, "prepare", test.file.stem))

    def finish(self, test: Test) -> None:
        self.events.append((self.name, "finish", test.file.stem, test.result.name))

    def end(self) -> None:
        self.events.append((self.name, "end"))
