"""flowbench: simulated pipeline runs for the pipeline editor."""

__version__ = "0.1.0"
