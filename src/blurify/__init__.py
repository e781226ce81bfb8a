"""blurify: mark regions of an image or ranges of a text and export them irreversibly obscured."""

__version__ = "0.1.0"
