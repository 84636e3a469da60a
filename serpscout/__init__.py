"""serpscout: resilient search-result acquisition."""

__version__ = "0.1.0"
