"""
Error types for the chromatin switch pipeline.
"""


class ConfigError(ValueError):
    """Invalid configuration or inconsistent input data.

    Raised at setup time this aborts the whole run. Raised while a single
    region is being processed it only marks that region as not applicable.
    """
