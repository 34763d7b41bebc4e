"""Corporate decision register with the shareholder revocation workflow."""

__version__ = "0.3.0"
