"""Metadata for login_finder."""

__all__ = [
    "__title__",
    "__version__",
    "__description__",
    "__credits__",
    "__requires_python__",
]

__title__ = "login_finder"
__version__ = "0.1.0"
__description__ = (
    "Crawl a site and flag the pages that look like login forms, aggregated per host."
)
__credits__ = [
    {"name": "Matthew D. Martin", "email": "matthewdeanmartin@users.noreply.github.com"}
]
__requires_python__ = ">=3.10"
