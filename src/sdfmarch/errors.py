"""Exception types raised by the renderer's host-side setup code."""


class ConfigError(ValueError):
    """Raised when a render configuration is rejected during setup.

    Configuration is validated once, before any kernel runs. Kernels never
    raise: numerical edge cases are clamped or replaced by fallback values.
    """
