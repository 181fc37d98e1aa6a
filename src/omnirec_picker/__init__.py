"""OmniRec picker for xdg-desktop-portal-hyprland.

A headless source picker with:
- The user's pre-selected capture target, fetched from the OmniRec service
- A one-time consent dialog, with "Always Allow" remembered by the service
- Fallback to hyprland-share-picker when OmniRec has nothing to offer
"""

__version__ = "0.1.0"
