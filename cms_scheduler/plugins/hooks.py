"""
Plugin Hook Constants

Hook types the scheduler invokes, and how a hook type resolves to the hook
names plugins declare in PluginMeta.hooks.

A hook type resolves to the generic name, the entity-type-specific name
"<entity_type>_<type>" and, for the primary "content" kind only, the legacy
name kept for plugins written against the node-only API.
"""

from __future__ import annotations

PRIMARY_ENTITY_TYPE = "content"

# ── Hook types ─────────────────────────────────────────────────────────────────
HOOK_LIST = "list"
HOOK_LIST_ALTER = "list_alter"
HOOK_PUBLISHING_ALLOWED = "publishing_allowed"
HOOK_UNPUBLISHING_ALLOWED = "unpublishing_allowed"
HOOK_PUBLISH_PROCESS = "publish_process"
HOOK_UNPUBLISH_PROCESS = "unpublish_process"
HOOK_HIDE_PUBLISH_DATE = "hide_publish_date"
HOOK_HIDE_UNPUBLISH_DATE = "hide_unpublish_date"

# ── Legacy names for the primary kind ─────────────────────────────────────────
LEGACY_CONTENT_HOOKS: dict[str, str] = {
    HOOK_LIST: "id_list",
    HOOK_LIST_ALTER: "id_list_alter",
    HOOK_PUBLISH_PROCESS: "publish_action",
    HOOK_UNPUBLISH_PROCESS: "unpublish_action",
    HOOK_PUBLISHING_ALLOWED: "allow_publishing",
    HOOK_UNPUBLISHING_ALLOWED: "allow_unpublishing",
    HOOK_HIDE_PUBLISH_DATE: "hide_publish_on_field",
    HOOK_HIDE_UNPUBLISH_DATE: "hide_unpublish_on_field",
}

# ── Master list ───────────────────────────────────────────────────────────────
ALL_HOOK_TYPES: list[str] = [
    HOOK_LIST,
    HOOK_LIST_ALTER,
    HOOK_PUBLISHING_ALLOWED,
    HOOK_UNPUBLISHING_ALLOWED,
    HOOK_PUBLISH_PROCESS,
    HOOK_UNPUBLISH_PROCESS,
    HOOK_HIDE_PUBLISH_DATE,
    HOOK_HIDE_UNPUBLISH_DATE,
]


def hook_names(hook_type: str, entity_type: str) -> list[str]:
    """Return the hook names a hook type resolves to for one entity type."""
    if hook_type not in ALL_HOOK_TYPES:
        raise ValueError(f"Unknown scheduler hook type '{hook_type}'")
    names = [hook_type, f"{entity_type}_{hook_type}"]
    if entity_type == PRIMARY_ENTITY_TYPE:
        names.append(LEGACY_CONTENT_HOOKS[hook_type])
    return names
