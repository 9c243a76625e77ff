"""Tandem - parallel test scheduler.

Runs every discovered test file as its own process, keeps at most ``N`` of
them alive at once, and orders re-runs so previously failing tests start
first.
"""

__version__ = "0.4.0"
