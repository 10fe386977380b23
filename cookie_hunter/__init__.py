"""Cookie Hunter: cookie retention and removal engine."""

__version__ = "1.0.0"
