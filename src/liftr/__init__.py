"""liftr: strength progression and program scheduling engine."""

__version__ = "0.3.0"
