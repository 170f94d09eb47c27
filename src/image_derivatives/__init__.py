"""Image derivatives: resized, aspect-classified versions of uploaded photos."""

__version__ = "0.1.0"
