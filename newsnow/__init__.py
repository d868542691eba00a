"""NewsNow backend: cached news source batches with freshness evaluation."""

__version__ = "0.1.0"
