class ManifestError(Exception):
    """Raised when a manifest cannot be fetched or parsed."""
