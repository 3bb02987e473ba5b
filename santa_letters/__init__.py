"""Letters to Santa: age-checked submissions, queued and emailed on a schedule."""

__version__ = "0.1.0"
