"""Copy project files into one flat directory with reversible names."""

__version__ = "1.0.1"
