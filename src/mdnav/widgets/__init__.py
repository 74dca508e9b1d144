"""mdnav widgets."""

from .content import SectionView
from .link_panel import LinkPanel
from .modals import HelpScreen, ThemePickerScreen
from .outline import Outline

__all__ = [
    "Outline",
    "SectionView",
    "LinkPanel",
    "HelpScreen",
    "ThemePickerScreen",
]
