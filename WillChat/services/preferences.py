import logging

from WillChat.services.storage import KeyValueStore

logger = logging.getLogger(__name__)

PRO_MODE_KEY = "will-ai-pro-mode"


# Persisted PRO mode flag ("true"/"false" under PRO_MODE_KEY)
class PreferencesStore:
    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    @property
    def is_pro_mode(self) -> bool:
        try:
            return self.kv.get_item(PRO_MODE_KEY) == "true"
        except Exception:
            logger.exception("preferences.pro_mode.load.error")
            return False

    def activate_pro_mode(self) -> None:
        self._save_pro_mode(True)

    def deactivate_pro_mode(self) -> None:
        self._save_pro_mode(False)

    def _save_pro_mode(self, enabled: bool) -> None:
        try:
            self.kv.set_item(PRO_MODE_KEY, "true" if enabled else "false")
            logger.info("preferences.pro_mode.saved: enabled=%s", enabled)
        except Exception:
            logger.exception("preferences.pro_mode.save.error")
