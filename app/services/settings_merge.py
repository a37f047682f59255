"""Settings merge model: defaults < stored blob < request overrides.

Services, workspaces and users keep their client-visible fields in a JSON blob
column. Responses are built by layering built-in defaults, the stored blob and
(on update calls) the request body. Merges are shallow: a later layer replaces
a key's value wholesale, nested objects included.

``iconUrl`` is derived, never stored: it is computed from ``iconId`` after the
merge, so no layer can set it directly.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.models.service import Service
    from app.models.user import User
    from app.models.workspace import Workspace

logger = logging.getLogger(__name__)

SERVICE_DEFAULTS: dict[str, Any] = {
    "customRecipe": False,
    "hasCustomIcon": False,
    "isBadgeEnabled": True,
    "isDarkModeEnabled": "",
    "isEnabled": True,
    "isMuted": False,
    "isNotificationEnabled": True,
    "order": 1,
    "spellcheckerLanguage": "",
    "workspaces": [],
    "iconUrl": None,
}

# Fields the client expects on /me that this server does not track per user
PROFILE_DEFAULTS: dict[str, Any] = {
    "accountType": "individual",
    "beta": False,
    "donor": {},
    "emailValidated": True,
    "features": {},
    "isPremium": True,
    "isSubscriptionOwner": True,
    "locale": "en-US",
}


def load_blob(value: Any) -> dict[str, Any]:
    """Deserialize a stored settings blob.

    Accepts JSON text or an already-structured mapping; None/empty -> {}.
    """
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (str, bytes)):
        if not value.strip():
            return {}
        parsed = json.loads(value)
        if not isinstance(parsed, dict):
            raise ValueError(f"Settings blob must be a JSON object, got {type(parsed).__name__}")
        return parsed
    raise TypeError(f"Unsupported settings blob type: {type(value).__name__}")


def load_list(value: Any) -> list[Any]:
    """Deserialize a stored JSON array (workspace members); None/empty -> []."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, (str, bytes)) and value.strip():
        parsed = json.loads(value)
        return parsed if isinstance(parsed, list) else []
    return []


def dump_blob(value: Mapping[str, Any] | list[Any]) -> str:
    """Serialize a blob for storage."""
    return json.dumps(value)


def merge_settings(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Shallow merge, later layers win."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def icon_url(base_url: str, icon_id: Any) -> str | None:
    """Public URL of an uploaded icon, or None when there is no icon."""
    if not icon_id:
        return None
    return f"{base_url.rstrip('/')}/v1/icon/{icon_id}"


def render(
    defaults: Mapping[str, Any] | None,
    stored: Mapping[str, Any] | None,
    overrides: Mapping[str, Any] | None,
    base_url: str,
) -> dict[str, Any]:
    """Merge the three layers, then derive ``iconUrl`` from the merged ``iconId``."""
    merged = merge_settings(defaults, stored, overrides)
    merged["iconUrl"] = icon_url(base_url, merged.get("iconId"))
    return merged


def render_service(
    service: Service,
    base_url: str,
    overrides: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Client representation of a service.

    Identity columns (id, name, recipeId, userId) always come from the row, not the blob.
    """
    stored = load_blob(service.settings)
    defaults = {**SERVICE_DEFAULTS, "hasCustomIcon": bool(stored.get("iconId"))}
    rendered = render(defaults, stored, overrides, base_url)
    rendered.update(
        {
            "id": service.service_id,
            "name": service.name,
            "recipeId": service.recipe_id,
            "userId": service.user_id,
        }
    )
    return rendered


def render_workspace(workspace: Workspace) -> dict[str, Any]:
    """Client representation of a workspace."""
    return {
        "id": workspace.workspace_id,
        "name": workspace.name,
        "order": workspace.order,
        "services": load_list(workspace.services),
        "userId": workspace.user_id,
    }


def render_profile(user: User, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Client representation of the account (``/me``)."""
    identity = {
        "id": str(user.id),
        "email": user.email,
        "firstname": user.username,
        "lastname": user.lastname,
    }
    return merge_settings(PROFILE_DEFAULTS, identity, load_blob(user.settings), overrides)
