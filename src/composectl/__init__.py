"""composectl — bring up compose projects against pluggable deployment backends."""

__version__ = "0.1.0"
