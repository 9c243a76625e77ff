"""Run observers.

Usage:
    from tandem.output import ConsoleOutput, JUnitOutput

    runner.output_handlers.append(ConsoleOutput(console))
    runner.output_handlers.append(JUnitOutput(Path("report.xml")))
"""

from tandem.output.base import OutputHandler
from tandem.output.console import ConsoleOutput
from tandem.output.junit import JUnitOutput
from tandem.output.log import LogOutput

__all__ = [
    "ConsoleOutput",
    "JUnitOutput",
    "LogOutput",
    "OutputHandler",
]
