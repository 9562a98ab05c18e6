"""Error taxonomy shared by every extractor and the HTTP layer."""


class PhishLensError(Exception):
    """Base class for engine errors."""


class ValidationError(PhishLensError):
    """Malformed or empty input. Raised before extraction; no partial result."""


class CatalogUnavailable(PhishLensError):
    """A reference catalog could not be loaded."""


class ExtractorTimeout(PhishLensError):
    """A sub-detector did not finish inside its budget."""

    def __init__(self, detector: str, budget: float):
        super().__init__(f"{detector} exceeded {budget:g}s")
        self.detector = detector
        self.budget = budget


class NetworkFailure(PhishLensError):
    """A network hop failed while resolving redirects or looking up facts."""


class AnalysisCancelled(PhishLensError):
    """The caller went away before the analysis finished."""
