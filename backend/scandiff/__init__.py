"""Compare the SAST filter configuration of two Checkmarx scans."""

__version__ = "1.0.0"
