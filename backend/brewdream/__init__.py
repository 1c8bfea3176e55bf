"""
Brewdream orchestration core.

Turns live video snapshots into stylized images and clips by chaining
a text model, image providers, an asset store and a live session
provider.
"""

__version__ = "0.1.0"
