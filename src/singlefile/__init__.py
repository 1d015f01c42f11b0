"""
SingleFile - run the tests that live inside a single Python file.

This package provides tools to:
- Drive pytest or unittest in-process on one script
- Stream pass/fail/skip lines to the console as tests finish
- Return a CI-friendly exit code from the script itself
"""

__version__ = "0.1.0"
__author__ = "SingleFile Team"

from singlefile.core.runner import TestRunner, run_tests

__all__ = ["TestRunner", "run_tests", "__version__"]
