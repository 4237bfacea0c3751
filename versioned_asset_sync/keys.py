"""
Asset key naming.

Logical keys are opaque to this library, but every local and remote name
derived from them is built here so the layouts stay in one place:

    local value:    {owner}__{key}                  (in the owner's cache directory)
    local marker:   {owner}__{key}__remoteVersion
    remote version: {owner}/{key}/{version_name}
    remote legacy:  {owner}/{key}
"""

from __future__ import annotations

from .exceptions import ValidationError

SCOPE_SEPARATOR = "__"
MARKER_SUFFIX = "__remoteVersion"


class AssetKeys:
    """Well-known asset slots used by the menu board editor."""

    INTRO_VIDEO = "introVideoBlob"
    MENU_BACKGROUND = "menuBackgroundBlob"
    MENU_LAYOUT = "menuLayoutJson"
    BACKGROUND_OVERRIDES = "menuBackgroundOverridesJson"


def menu_layout_key(language: str | None = None) -> str:
    """Layout document key for one menu language (defaults to 'en')."""
    return f"{AssetKeys.MENU_LAYOUT}_{language or 'en'}"


def background_page_key(page: int) -> str:
    """Background blob key for a single menu page (1-based)."""
    if page < 1:
        raise ValidationError("page", "must be >= 1", str(page))
    return f"{AssetKeys.MENU_BACKGROUND}__P{page}"


def validate_owner(owner: str) -> str:
    if not owner or not owner.strip():
        raise ValidationError("owner", "must not be empty")
    if "/" in owner:
        raise ValidationError("owner", "must not contain '/'", owner)
    if owner in (".", ".."):
        raise ValidationError("owner", "must not be a relative path component", owner)
    return owner


def validate_key(key: str) -> str:
    if not key or not key.strip():
        raise ValidationError("key", "must not be empty")
    if "/" in key or "\\" in key:
        raise ValidationError("key", "must not contain path separators", key)
    if key.endswith(MARKER_SUFFIX):
        raise ValidationError("key", f"must not end with '{MARKER_SUFFIX}'", key)
    return key


def scoped_key(owner: str, key: str) -> str:
    return f"{owner}{SCOPE_SEPARATOR}{key}"


def marker_key(owner: str, key: str) -> str:
    return f"{scoped_key(owner, key)}{MARKER_SUFFIX}"


def owner_prefix(owner: str) -> str:
    return f"{owner}{SCOPE_SEPARATOR}"


def version_folder(owner: str, key: str) -> str:
    return f"{owner}/{key}"


def legacy_path(owner: str, key: str) -> str:
    return f"{owner}/{key}"
