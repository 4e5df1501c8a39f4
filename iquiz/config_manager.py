"""
Configuration manager for persisted iQuiz settings.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional


SettingsListener = Callable[[str, Any], None]


class ConfigManager:
    """Manages the persisted source URL and refresh interval settings."""

    SOURCE_URL_KEY = "sourceURL"
    REFRESH_INTERVAL_KEY = "refreshInterval"

    # Default configuration values
    DEFAULT_SOURCE_URL = "https://tednewardsandbox.site44.com/questions.json"
    DEFAULT_REFRESH_INTERVAL = 60
    DEFAULT_SETTINGS_PATH = "./data/settings.json"

    # Validation limits
    MIN_REFRESH_INTERVAL = 10
    MAX_REFRESH_INTERVAL = 3600  # 1 hour
    REFRESH_INTERVAL_STEP = 10

    def __init__(self, settings_path: Optional[str] = DEFAULT_SETTINGS_PATH):
        """
        Initialize ConfigManager and read any persisted settings.

        Args:
            settings_path: JSON file backing the settings, or None to keep them in memory only
        """
        self.logger = logging.getLogger(__name__)
        self.settings_path = Path(settings_path) if settings_path is not None else None
        self._source_url = self.DEFAULT_SOURCE_URL
        self._refresh_interval = self.DEFAULT_REFRESH_INTERVAL
        self._listeners: List[SettingsListener] = []
        self._load()

    def _load(self) -> None:
        """Read persisted settings, keeping defaults for anything missing or invalid."""
        if self.settings_path is None or not self.settings_path.exists():
            return

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Invalid JSON in {self.settings_path}, using defaults: {e}")
            return
        except OSError as e:
            self.logger.warning(f"Failed to read {self.settings_path}, using defaults: {e}")
            return

        if not isinstance(data, dict):
            self.logger.warning(f"Settings in {self.settings_path} must be a JSON object, using defaults")
            return

        source_url = data.get(self.SOURCE_URL_KEY)
        if isinstance(source_url, str) and source_url.strip():
            self._source_url = source_url
        elif source_url is not None:
            self.logger.warning(f"Ignoring invalid persisted {self.SOURCE_URL_KEY}: {source_url!r}")

        interval = data.get(self.REFRESH_INTERVAL_KEY)
        if interval is not None:
            if self._refresh_interval_error(interval) is None:
                self._refresh_interval = interval
            else:
                self.logger.warning(f"Ignoring invalid persisted {self.REFRESH_INTERVAL_KEY}: {interval!r}")

        self.logger.info(f"Loaded settings from {self.settings_path}")

    def _save(self) -> Optional[str]:
        """
        Write settings through to disk.

        Returns:
            None on success, otherwise the error message
        """
        if self.settings_path is None:
            return None

        data = {
            self.SOURCE_URL_KEY: self._source_url,
            self.REFRESH_INTERVAL_KEY: self._refresh_interval,
        }
        tmp_path = self.settings_path.with_name(self.settings_path.name + ".tmp")
        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.settings_path)
            return None
        except OSError as e:
            error_msg = f"Failed to save settings to {self.settings_path}: {e}"
            self.logger.error(error_msg)
            return error_msg

    def add_listener(self, listener: SettingsListener) -> None:
        """Register a callback invoked with ``(key, value)`` after each successful change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SettingsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, key: str, value: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(key, value)
            except Exception as e:
                self.logger.error(f"Settings listener failed for {key}: {e}")

    def _apply(self, key: str, value: Any, message: str, user_message: str) -> Dict[str, Any]:
        save_error = self._save()
        self.logger.info(message)
        self._notify(key, value)

        result = {
            'success': True,
            'message': message,
            'user_message': user_message,
        }
        if save_error:
            result['warning'] = save_error
            result['user_message'] = f"{user_message} (not saved: settings file could not be written)"
        return result

    def set_source_url(self, url: str) -> Dict[str, Any]:
        """
        Set the catalog source URL.

        Syntactic URL checks happen when the catalog is loaded; here the
        value only has to be a non-empty string.

        Args:
            url: Catalog endpoint

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(url, str):
            error_msg = f"Source URL must be a string, got {type(url).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a URL, got {type(url).__name__}"
            }

        url = url.strip()
        if not url:
            error_msg = "Source URL cannot be empty"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Source URL cannot be empty"
            }

        self._source_url = url
        return self._apply(
            self.SOURCE_URL_KEY,
            url,
            f"Source URL set to {url}",
            f"✅ Quizzes will be loaded from {url}",
        )

    def get_source_url(self) -> str:
        return self._source_url

    def _refresh_interval_error(self, seconds: Any) -> Optional[str]:
        if isinstance(seconds, bool) or not isinstance(seconds, int):
            return f"Refresh interval must be an integer, got {type(seconds).__name__}"
        if seconds < self.MIN_REFRESH_INTERVAL:
            return f"Refresh interval must be at least {self.MIN_REFRESH_INTERVAL} seconds"
        if seconds > self.MAX_REFRESH_INTERVAL:
            return f"Refresh interval cannot exceed {self.MAX_REFRESH_INTERVAL} seconds"
        if seconds % self.REFRESH_INTERVAL_STEP != 0:
            return f"Refresh interval must be a multiple of {self.REFRESH_INTERVAL_STEP} seconds"
        return None

    def set_refresh_interval(self, seconds: int) -> Dict[str, Any]:
        """
        Set the auto-refresh interval.

        Args:
            seconds: Interval between catalog refreshes

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        error_msg = self._refresh_interval_error(seconds)
        if error_msg:
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': (
                    f"❌ {error_msg}. Choose {self.MIN_REFRESH_INTERVAL}-{self.MAX_REFRESH_INTERVAL} "
                    f"seconds in steps of {self.REFRESH_INTERVAL_STEP}"
                )
            }

        self._refresh_interval = seconds
        return self._apply(
            self.REFRESH_INTERVAL_KEY,
            seconds,
            f"Refresh interval set to {seconds} seconds",
            f"✅ Quizzes will refresh every {seconds} seconds",
        )

    def step_refresh_interval(self, direction: int) -> Dict[str, Any]:
        """
        Move the refresh interval one step up or down, clamped to the allowed range.

        Args:
            direction: Positive to increase, negative to decrease

        Returns:
            Result of set_refresh_interval, with 'new_value' on success
        """
        if direction == 0:
            return {
                'success': True,
                'new_value': self._refresh_interval,
                'message': "Refresh interval unchanged",
                'user_message': f"Refresh interval is {self._refresh_interval} seconds"
            }

        step = self.REFRESH_INTERVAL_STEP if direction > 0 else -self.REFRESH_INTERVAL_STEP
        new_value = min(
            self.MAX_REFRESH_INTERVAL,
            max(self.MIN_REFRESH_INTERVAL, self._refresh_interval + step)
        )
        if new_value == self._refresh_interval:
            return {
                'success': True,
                'new_value': new_value,
                'message': "Refresh interval already at limit",
                'user_message': f"Refresh interval is {new_value} seconds"
            }

        result = self.set_refresh_interval(new_value)
        if result['success']:
            result['new_value'] = new_value
        return result

    def get_refresh_interval(self) -> int:
        return self._refresh_interval

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values and persist them."""
        changed = []
        if self._source_url != self.DEFAULT_SOURCE_URL:
            changed.append((self.SOURCE_URL_KEY, self.DEFAULT_SOURCE_URL))
        if self._refresh_interval != self.DEFAULT_REFRESH_INTERVAL:
            changed.append((self.REFRESH_INTERVAL_KEY, self.DEFAULT_REFRESH_INTERVAL))

        self._source_url = self.DEFAULT_SOURCE_URL
        self._refresh_interval = self.DEFAULT_REFRESH_INTERVAL
        self._save()
        self.logger.info("All settings reset to default values")
        # Listeners only hear about values that actually changed
        for key, value in changed:
            self._notify(key, value)

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }

        if not isinstance(self._source_url, str) or not self._source_url.strip():
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid source URL: {self._source_url}")

        interval_error = self._refresh_interval_error(self._refresh_interval)
        if interval_error:
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Invalid refresh interval: {self._refresh_interval} ({interval_error})"
            )

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        return (
            f"iQuiz Settings:\n"
            f"• Source URL: {self._source_url}\n"
            f"• Refresh: every {self._refresh_interval} seconds"
        )
