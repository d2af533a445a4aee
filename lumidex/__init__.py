"""Lumidex variant determination and price normalization engine."""

__version__ = "1.0.0"
