"""Theme preference service for the rendering layer; the engine never reads it."""

from __future__ import annotations

from typing import Callable, List, Optional

from .persistence import THEME_STORAGE_KEY

LIGHT = "light"
DARK = "dark"
THEMES = (LIGHT, DARK)


class SettingsService:
    """Owns the theme, persists explicit choices, and notifies subscribers."""

    def __init__(self, store, system_prefers_dark: bool = False) -> None:
        self.store = store
        self._subscribers: List[Callable[[str], None]] = []
        saved = store.get(THEME_STORAGE_KEY)
        if saved in THEMES:
            self.theme = saved
        else:
            self.theme = DARK if system_prefers_dark else LIGHT

    @property
    def explicit(self) -> bool:
        return self.store.get(THEME_STORAGE_KEY) in THEMES

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register ``callback``; the returned function unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _apply(self, theme: str) -> None:
        if theme == self.theme:
            return
        self.theme = theme
        for callback in list(self._subscribers):
            callback(theme)

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme {theme!r}")
        self.store.set(THEME_STORAGE_KEY, theme)
        self._apply(theme)

    def toggle(self) -> str:
        self.set_theme(DARK if self.theme == LIGHT else LIGHT)
        return self.theme

    def system_changed(self, prefers_dark: bool) -> Optional[str]:
        """Follow the OS preference only while the user never picked a theme."""
        if self.explicit:
            return None
        self._apply(DARK if prefers_dark else LIGHT)
        return self.theme


__all__ = ["LIGHT", "DARK", "THEMES", "SettingsService"]
