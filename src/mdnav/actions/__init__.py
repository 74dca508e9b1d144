"""Action handler mixins for MdnavApp."""

from .file_actions import FileActionsMixin
from .link_actions import LinkActionsMixin
from .navigation_actions import NavigationActionsMixin

__all__ = [
    "FileActionsMixin",
    "LinkActionsMixin",
    "NavigationActionsMixin",
]
