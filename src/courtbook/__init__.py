"""courtbook - Tennis court booking over browser automation."""

__version__ = "0.1.0"
