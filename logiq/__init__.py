"""LogIQ: timed cognitive-assessment quiz engine."""

__version__ = "1.0.0"
