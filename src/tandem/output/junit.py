"""JUnit XML report, written when the run ends."""

from __future__ import annotations

import time
import xml.etree.ElementTree as ET
from pathlib import Path

from tandem.core.logging import get_logger
from tandem.runner.test import Result, Test

_logger = get_logger("output.junit")


class JUnitOutput:
    """Collects finished tests and writes one ``<testsuite>`` document."""

    def __init__(self, path: Path, suite_name: str = "tandem") -> None:
        self.path = path
        self.suite_name = suite_name
        self._tests: list[Test] = []
        self._started_at = time.monotonic()

    def begin(self) -> None:
        self._tests = []
        self._started_at = time.monotonic()

    def prepare(self, test: Test) -> None:
        pass

    def finish(self, test: Test) -> None:
        self._tests.append(test)

    def end(self) -> None:
        suite = self.build()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        ET.ElementTree(suite).write(self.path, encoding="utf-8", xml_declaration=True)
        _logger.info("junit.written", path=str(self.path), tests=len(self._tests))

    def build(self) -> ET.Element:
        """Build the ``<testsuite>`` element for the tests finished so far."""
        suite = ET.Element("testsuite", {
            "name": self.suite_name,
            "tests": str(len(self._tests)),
            "failures": str(sum(t.result is Result.FAILED for t in self._tests)),
            "skipped": str(sum(t.result is Result.SKIPPED for t in self._tests)),
            "errors": "0",
            "time": f"{time.monotonic() - self._started_at:.3f}",
        })

        for test in self._tests:
            case = ET.SubElement(suite, "testcase", {
                "classname": str(test.file.parent),
                "name": " ".join([test.name, *test.args]),
                "time": f"{test.duration or 0.0:.3f}",
            })
            message = test.message or ""
            if test.result is Result.FAILED:
                failure = ET.SubElement(case, "failure", {
                    "message": message.splitlines()[0] if message else "Failed",
                })
                failure.text = message
            elif test.result is Result.SKIPPED:
                ET.SubElement(case, "skipped", {"message": message})
            if test.output:
                ET.SubElement(case, "system-out").text = test.output

        return suite
