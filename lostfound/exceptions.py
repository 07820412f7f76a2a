"""Custom exceptions for image comparison."""


class ImageComparisonError(Exception):
    """Base exception."""
    pass


class AnalysisUnavailableError(ImageComparisonError):
    def __init__(self, reference: str, reason: str):
        super().__init__(f"Image analysis unavailable for {reference}: {reason}")
        self.reference = reference
        self.reason = reason


class InvalidInputError(ImageComparisonError):
    pass


class UnsupportedFormatError(ImageComparisonError):
    def __init__(self, fmt: str):
        super().__init__(f"Unsupported format: {fmt}. Use JPEG, PNG, WEBP, or HEIC.")
        self.fmt = fmt
