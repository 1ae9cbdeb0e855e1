"""PGW simulator: BCD IMSI codec, UDP session server with CDR output, HTTP control API and client."""

__version__ = "0.1.0"