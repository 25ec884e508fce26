"""
Errors raised by the composition and preset engines.

Degraded duration resolution and missing patch targets are not errors:
they are logged and the engines carry on.
"""


class CompositionError(Exception):
    """Base class for all mediamotion errors."""


class ProbeError(CompositionError):
    """The media probe could not determine a natural duration."""

    def __init__(self, src: str, reason: str):
        self.src = src
        self.reason = reason
        super().__init__(f"Could not probe {src}: {reason}")


class AssemblyAborted(CompositionError):
    """The abort signal fired while an assembly was in flight."""


class MalformedPresetError(CompositionError):
    """A preset transform raised, or returned a shape its preset type can't use."""

    def __init__(self, preset_id: str, reason: str):
        self.preset_id = preset_id
        self.reason = reason
        super().__init__(f"Preset '{preset_id}' is malformed: {reason}")


class PresetNotFoundError(CompositionError):
    """No preset is registered under the requested id."""
