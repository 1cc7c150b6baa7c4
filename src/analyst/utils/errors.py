from __future__ import annotations


class FetchError(Exception):
    """The tick source could not supply a tick this cycle (transient)."""


class InvalidTick(FetchError):
    """A tick arrived but breaks a basic invariant (e.g. low > high)."""
