"""Registration-Desk: visit registration form engine."""

__version__ = "0.1.0"
