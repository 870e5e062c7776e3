class ImageOptimizationError(Exception):
    """Raised when a raw page bitmap cannot be re-encoded."""
