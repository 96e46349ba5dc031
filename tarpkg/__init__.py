"""tarpkg: fetch, verify and install signed tar packages from mirrors."""

__version__ = "0.1.0"
