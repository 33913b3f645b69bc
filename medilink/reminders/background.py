"""
Background push display.

Clients that are not in the foreground still need delivered reminders to show
up as system notifications. Desktop clients use ``BackgroundNotifier`` with a
plyer-backed host; web clients get the equivalent handler as a Firebase
messaging service worker rendered from configuration.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from plyer import notification

from .config import ReminderSettings, settings

logger = logging.getLogger(__name__)


class NotificationHost(ABC):
    """Platform surface able to display a system notification."""

    @abstractmethod
    def show_notification(self, title: str, options: Dict[str, Any]) -> None:
        ...


class PlyerNotificationHost(NotificationHost):

    def __init__(self, app_name: str = "MediLink", timeout: int = 10):
        self.app_name = app_name
        self.timeout = timeout

    def show_notification(self, title: str, options: Dict[str, Any]) -> None:
        notification.notify(
            title=title,
            message=options.get("body", ""),
            app_name=self.app_name,
            app_icon=options.get("icon") or "",
            timeout=self.timeout,
        )


class BackgroundNotifier:

    def __init__(self, host: Optional[NotificationHost] = None, icon: Optional[str] = None):
        self.host = host or PlyerNotificationHost()
        self.icon = icon or settings.NOTIFICATION_ICON

    def on_background_message(self, payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        logger.info("Received background message %s", payload)
        notification = payload.get("notification") if payload else None
        if not notification:
            logger.info("Background message has no notification section; nothing to display")
            return None

        options = {"body": notification.get("body"), "icon": self.icon}
        self.host.show_notification(notification.get("title"), options)
        return options

    def register(self, source) -> None:
        """Subscribe to a messaging source exposing ``on_background_message(callback)``."""
        source.on_background_message(self.on_background_message)


SERVICE_WORKER_TEMPLATE = """\
importScripts("https://www.gstatic.com/firebasejs/{version}/firebase-app-compat.js");
importScripts("https://www.gstatic.com/firebasejs/{version}/firebase-messaging-compat.js");

firebase.initializeApp({config});

const messaging = firebase.messaging();

messaging.onBackgroundMessage((payload) => {{
  console.log("[firebase-messaging-sw.js] Received background message ", payload);
  const notificationTitle = payload.notification.title;
  const notificationOptions = {{
    body: payload.notification.body,
    icon: {icon},
  }};

  self.registration.showNotification(notificationTitle, notificationOptions);
}});
"""


def firebase_web_config(cfg: ReminderSettings) -> Dict[str, str]:
    config = {
        "apiKey": cfg.WEB_API_KEY,
        "authDomain": cfg.WEB_AUTH_DOMAIN,
        "projectId": cfg.FCM_PROJECT_ID,
        "storageBucket": cfg.WEB_STORAGE_BUCKET,
        "messagingSenderId": cfg.WEB_MESSAGING_SENDER_ID,
        "appId": cfg.WEB_APP_ID,
    }
    return {key: value for key, value in config.items() if value}


def render_service_worker(cfg: Optional[ReminderSettings] = None) -> str:
    cfg = cfg or settings
    return SERVICE_WORKER_TEMPLATE.format(
        version=cfg.FIREBASE_JS_VERSION,
        config=json.dumps(firebase_web_config(cfg), indent=2),
        icon=json.dumps(cfg.NOTIFICATION_ICON),
    )
