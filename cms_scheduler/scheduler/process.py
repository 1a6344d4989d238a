"""The two scheduled processes and the names derived from them."""

import enum

from cms_scheduler.plugins import hooks


class Process(str, enum.Enum):
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"

    @property
    def date_field(self) -> str:
        return f"{self.value}_on"

    @property
    def allowed_hook(self) -> str:
        return hooks.HOOK_PUBLISHING_ALLOWED if self is Process.PUBLISH else hooks.HOOK_UNPUBLISHING_ALLOWED

    @property
    def process_hook(self) -> str:
        return hooks.HOOK_PUBLISH_PROCESS if self is Process.PUBLISH else hooks.HOOK_UNPUBLISH_PROCESS

    @property
    def hide_hook(self) -> str:
        return hooks.HOOK_HIDE_PUBLISH_DATE if self is Process.PUBLISH else hooks.HOOK_HIDE_UNPUBLISH_DATE

    @property
    def label(self) -> str:
        """Capitalised gerund used in log messages, e.g. "Publishing"."""
        return f"{self.value.capitalize()}ing"
