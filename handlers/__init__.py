from .capture import CaptureWindow, CaptureWindowOpen
from .popups import dismiss_popups, force_remove_overlays
from .scrolling import scroll_for_lazy_load

__all__ = [
    "CaptureWindow",
    "CaptureWindowOpen",
    "dismiss_popups",
    "force_remove_overlays",
    "scroll_for_lazy_load",
]
