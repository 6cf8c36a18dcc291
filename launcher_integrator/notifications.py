"""Fire-and-forget notifications to the desktop shell."""

from __future__ import annotations

from .logger import get_logger

_logger = get_logger("notifications")


def notify_icon_changed() -> bool:
    """Tell KDE/Plasma that icons changed so launchers are repainted.

    Never raises; returns whether the signal was handed to the session bus.
    """
    try:
        from PySide6.QtDBus import QDBusConnection, QDBusMessage

        message = QDBusMessage.createSignal("/KIconLoader", "org.kde.KIconLoader", "iconChanged")
        message.setArguments([0])
        bus = QDBusConnection.sessionBus()
        if not bus.isConnected():
            _logger.debug("no session bus, icon change not announced")
            return False
        sent = bool(bus.send(message))
    except Exception as e:  # best effort
        _logger.debug("icon change notification failed: %s", e)
        return False
    _logger.debug("icon change announced: %s", sent)
    return sent
