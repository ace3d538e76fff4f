"""cy-parallel: weighted parallel execution of end-to-end test specs."""

__version__ = "1.1.0"
