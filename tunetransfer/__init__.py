"""tunetransfer - move a streaming library from one provider to another."""

__version__ = "0.1.0"
