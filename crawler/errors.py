"""
Exceptions raised by the crawler components.
"""


class CrawlerError(Exception):
    """Base class for crawler exceptions."""
    pass


class BrowserLaunchError(CrawlerError):
    """Raised when the headless browser cannot be started."""
    pass


class NavigationError(CrawlerError):
    """Raised when the listing page fails to load in time."""
    pass


class ExtractionError(CrawlerError):
    """Raised when evaluating the extraction script fails."""
    pass
