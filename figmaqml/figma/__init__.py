"""Figma REST API access for figmaqml.

Example:
    >>> from figmaqml.figma import FigmaClient, ImageProvider, RemoteNodeResolver
    >>>
    >>> client = FigmaClient()
    >>> project = client.get_file(file_key)
    >>> resolve = RemoteNodeResolver(client, file_key)
    >>> images = ImageProvider(client, file_key)
"""

from figmaqml.figma.lib import (
    PLACEHOLDER,
    TRANSPARENT_PNG,
    FigmaClient,
    FigmaError,
    ImageProvider,
    RemoteNodeResolver,
    data_uri,
    offline_image,
)

__all__ = [
    # Client
    "FigmaClient",
    "FigmaError",
    # Callbacks
    "ImageProvider",
    "RemoteNodeResolver",
    # Helpers
    "PLACEHOLDER",
    "TRANSPARENT_PNG",
    "data_uri",
    "offline_image",
]
