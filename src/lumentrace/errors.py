"""Exception types raised by the renderer.

Construction-time problems (bad geometry, bad materials, a degenerate camera,
invalid render settings) are reported through these exceptions before any
rendering work starts. Once a render has started it always runs to
completion, so nothing in this module is raised from inside a kernel.

All errors derive from ValueError, so callers that already guard scene
construction with ``except ValueError`` keep working.
"""


class LumentraceError(ValueError):
    """Base class for all renderer errors."""


class InvalidGeometryError(LumentraceError):
    """A shape has degenerate or non-finite parameters."""


class InvalidMaterialError(LumentraceError):
    """A material has parameters outside its physical range."""


class DegenerateCameraError(LumentraceError):
    """The camera parameters do not define a usable view."""


class ConfigurationError(LumentraceError):
    """Render settings are out of range."""


class DegenerateVectorError(LumentraceError):
    """A zero-length or non-finite vector was normalized."""
