"""Device identity and challenge-response door unlock client."""

__version__ = "0.1.0"
