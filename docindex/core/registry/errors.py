from __future__ import annotations


class EnvironmentUnavailable(RuntimeError):
    """Neither a registry nor a pending-queue slot could be reached for a delivery."""

    def __init__(self, channel: str, reason: str = "environment unavailable"):
        super().__init__(f"{reason} (channel={channel})")
        self.channel = channel
        self.reason = reason


class RegistryStateError(ValueError):
    pass


class FragmentLoadError(Exception):
    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message
