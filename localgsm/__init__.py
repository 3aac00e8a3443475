"""
LocalGSM: Local Google Secret Manager Emulator

A local emulator of the Secret Manager REST API for offline development and testing.
"""

__version__ = "1.0.0"
__author__ = "LocalGSM Team"

__all__ = ["__version__"]
