"""List the TCP ports each process is listening on, read straight from /proc."""

__version__ = "0.1.0"
