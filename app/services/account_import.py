"""Account import: migrate a Franz account (profile, services, workspaces) to this server.

The import runs as a fixed sequence of steps; each remote or storage call is tried
exactly once:

1. validate the form (email format and uniqueness, password present)
2. digest the password the way Franz clients do (base64 SHA-256)
3. federation disabled: create a bare local account and stop
4. log into the upstream account API
5. fetch the upstream profile
6. create the local user
7. import services, recording remote id -> new local id
8. import workspaces, translating member ids through that table

Nothing is written before step 6. A failure in step 7 or 8 leaves the rows already
committed in place unless ``import_rollback_on_failure`` is set, in which case the
importer deletes everything it created (``compensate``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings
from app.errors import (
    AppError,
    Conflict,
    ImportStepFailed,
    LocalUserCreateFailed,
    UpstreamLoginFailed,
    UpstreamProfileUnavailable,
    UpstreamUnavailable,
    ValidationFailed,
)
from app.models.service import Service
from app.models.user import User
from app.models.workspace import Workspace
from app.services.auth import create_user, get_user_by_email, hash_password
from app.services.identifiers import (
    insert_with_unique_id,
    service_id_exists,
    workspace_id_exists,
)
from app.services.settings_merge import dump_blob
from app.upstream.client import UpstreamClient

logger = logging.getLogger(__name__)

UPSTREAM_LOGIN_OK = "Successfully logged in"
PLACEHOLDER_NAME = "Franz"

IMPORT_DONE_MESSAGE = (
    "Your account has been imported. You can now log in with your Franz credentials."
)
IMPORT_LOCAL_ONLY_MESSAGE = (
    "Your account has been created but due to this server's configuration, "
    "we could not import your Franz account data.\n\n"
    "If you are the server owner, please set CONNECT_WITH_FRANZ to true "
    "to enable account imports."
)
VALIDATION_HEADING = "There was an error while trying to import your account:\n"

# Failures inside the services/workspaces steps
_STEP_ERRORS = (UpstreamUnavailable, Conflict, SQLAlchemyError, ValueError, TypeError)


def validate_import_form(db: Session, email: str | None, password: str | None) -> None:
    """Raise ValidationFailed with one human-readable line per violation."""
    errors: list[dict[str, str]] = []
    if not email:
        errors.append({"field": "email", "message": "- Please make sure to supply your email"})
    else:
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            errors.append({"field": "email", "message": "- Please supply a valid email address."})
        else:
            if get_user_by_email(db, email) is not None:
                errors.append(
                    {"field": "email", "message": "- There is already a user with this email."}
                )
    if not password:
        errors.append(
            {"field": "password", "message": "- Please make sure to supply your password"}
        )

    if errors:
        text = VALIDATION_HEADING + "".join(f"{e['message']}\n" for e in errors)
        raise ValidationFailed(text, errors=errors)


def _require_str(obj: Any, key: str) -> str:
    if not isinstance(obj, dict):
        raise TypeError(f"expected an object, got {type(obj).__name__}")
    value = obj.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"missing '{key}'")
    return value


def _require_id(obj: Any, key: str = "id") -> str:
    """Remote ids arrive as strings or integers; both are kept as strings."""
    if not isinstance(obj, dict):
        raise TypeError(f"expected an object, got {type(obj).__name__}")
    value = obj.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str) or not value:
        raise ValueError(f"missing '{key}'")
    return value


class IdTranslation:
    """Remote service id -> local service id table built while importing services."""

    def __init__(self) -> None:
        self._map: dict[str, str] = {}

    def add(self, remote_id: str, local_id: str) -> None:
        self._map[str(remote_id)] = local_id

    def get(self, remote_id: str) -> str | None:
        return self._map.get(str(remote_id))

    def translate(self, remote_ids: list[Any]) -> list[str]:
        """Map ids in order; ids that were never imported are dropped."""
        translated: list[str] = []
        for remote_id in remote_ids:
            local_id = self.get(remote_id)
            if local_id is None:
                logger.warning("Dropping workspace member %s: service was not imported", remote_id)
                continue
            translated.append(local_id)
        return translated

    def __len__(self) -> int:
        return len(self._map)


@dataclass
class ImportResult:
    """What an import created. ``federated`` is False for local-only accounts."""

    user: User
    message: str
    federated: bool = True
    services: list[Service] = field(default_factory=list)
    workspaces: list[Workspace] = field(default_factory=list)
    translation: IdTranslation = field(default_factory=IdTranslation)


class AccountImporter:
    """Runs the import steps against one DB session and one upstream client."""

    def __init__(self, db: Session, settings: Settings, upstream: UpstreamClient) -> None:
        self.db = db
        self.settings = settings
        self.upstream = upstream

    def run(self, email: str | None, password: str | None) -> ImportResult:
        validate_import_form(self.db, email, password)
        digest = hash_password(password)

        if not self.settings.connect_with_franz:
            user = self._create_user(email, digest, PLACEHOLDER_NAME, PLACEHOLDER_NAME)
            logger.info("Created local-only account %s (federation disabled)", user.id)
            return ImportResult(user=user, message=IMPORT_LOCAL_ONLY_MESSAGE, federated=False)

        token = self._login(email, digest)
        profile = self._fetch_profile(token)
        user = self._create_user(
            profile.get("email") or email,
            digest,
            profile.get("firstname") or "",
            profile.get("lastname") or "",
        )
        result = ImportResult(user=user, message=IMPORT_DONE_MESSAGE)

        try:
            self._import_services(token, result)
            self._import_workspaces(token, result)
        except ImportStepFailed:
            if self.settings.import_rollback_on_failure:
                self.compensate(result)
            raise

        logger.info(
            "Imported account %s: %d services, %d workspaces",
            user.id,
            len(result.services),
            len(result.workspaces),
        )
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _login(self, email: str, digest: str) -> str:
        try:
            content = self.upstream.login(email, digest)
        except UpstreamUnavailable as exc:
            raise UpstreamLoginFailed(f"Cannot login to Franz: {exc.message}") from exc
        token = content.get("token")
        if content.get("message") != UPSTREAM_LOGIN_OK or not token:
            logger.info("Upstream rejected login for import of %s", email)
            raise UpstreamLoginFailed()
        return token

    def _fetch_profile(self, token: str) -> dict[str, Any]:
        try:
            profile = self.upstream.get_profile(token)
        except UpstreamUnavailable as exc:
            raise UpstreamProfileUnavailable(
                f"{UpstreamProfileUnavailable.default_message}\nError: {exc.message}"
            ) from exc
        if not profile:
            raise UpstreamProfileUnavailable()
        return profile

    def _create_user(self, email: str, digest: str, firstname: str, lastname: str) -> User:
        try:
            return create_user(self.db, email, digest, firstname=firstname, lastname=lastname)
        except (Conflict, SQLAlchemyError) as exc:
            self.db.rollback()
            raise LocalUserCreateFailed(
                f"{LocalUserCreateFailed.default_message}\nError: {exc}"
            ) from exc

    def _import_services(self, token: str, result: ImportResult) -> None:
        try:
            remote_services = self.upstream.get_services(token)
            for remote in remote_services:
                remote_id = _require_id(remote)
                name = _require_str(remote, "name")
                recipe_id = _require_str(remote, "recipeId")
                service = insert_with_unique_id(
                    self.db,
                    lambda new_id: Service(
                        user_id=result.user.id,
                        service_id=new_id,
                        name=name,
                        recipe_id=recipe_id,
                        settings=dump_blob(remote),
                    ),
                    service_id_exists(self.db),
                )
                result.services.append(service)
                result.translation.add(remote_id, service.service_id)
        except _STEP_ERRORS as exc:
            self.db.rollback()
            raise ImportStepFailed(
                "services", f"Could not import your services into our system.\nError: {_describe(exc)}"
            ) from exc

    def _import_workspaces(self, token: str, result: ImportResult) -> None:
        try:
            remote_workspaces = self.upstream.get_workspaces(token)
            for remote in remote_workspaces:
                name = _require_str(remote, "name")
                members = result.translation.translate(remote.get("services") or [])
                order = int(remote.get("order") or 0)
                workspace = insert_with_unique_id(
                    self.db,
                    lambda new_id: Workspace(
                        user_id=result.user.id,
                        workspace_id=new_id,
                        name=name,
                        order=order,
                        services=dump_blob(members),
                        data=dump_blob({}),
                    ),
                    workspace_id_exists(self.db),
                )
                result.workspaces.append(workspace)
        except _STEP_ERRORS as exc:
            self.db.rollback()
            raise ImportStepFailed(
                "workspaces",
                f"Could not import your workspaces into our system.\nError: {_describe(exc)}",
            ) from exc

    # ------------------------------------------------------------------
    # Compensation
    # ------------------------------------------------------------------

    def compensate(self, result: ImportResult) -> None:
        """Delete every row this import created, newest first."""
        logger.warning("Rolling back partial import of account %s", result.user.id)
        for workspace in reversed(result.workspaces):
            self.db.delete(workspace)
        for service in reversed(result.services):
            self.db.delete(service)
        self.db.delete(result.user)
        self.db.commit()
        result.workspaces.clear()
        result.services.clear()


def _describe(exc: Exception) -> str:
    if isinstance(exc, AppError):
        return exc.message
    return str(exc)
