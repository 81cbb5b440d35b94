from __future__ import annotations


class SgsstError(Exception):
    """Base exception with user-friendly message."""
    pass


class ConfigError(SgsstError):
    """Missing or invalid .sgsst-cli.ini, or bad --init input."""
    pass


class ApiError(SgsstError):
    """The SG-SST deployment could not be reached or rejected an action."""
    pass


class AuthenticationError(ApiError):
    pass
