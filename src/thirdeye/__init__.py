"""The Third Eye desktop shell."""

__version__ = "1.0.0"
