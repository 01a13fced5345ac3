"""Per-user password resolution.

Three outcomes:

- the user names an existing secret (``password_secret_ref``): it is used
  verbatim and nothing is generated;
- a password is generated and, when Secret Manager storage is requested, a
  secret id/reference is allocated for the provisioning layer to write it to;
- a password is generated and handed back directly for transient injection.

Generated passwords never appear in ``repr`` output or logs.
"""

from __future__ import annotations

import logging
import re
import secrets
import string
from random import Random

from daylily_cloudsql.errors import InvalidSettingError, PasswordTooShortError
from daylily_cloudsql.models.plan import SecretResolution, SecretSource
from daylily_cloudsql.models.request import UserSpec
from daylily_cloudsql.validation.catalog import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)

# Same exclusions RDS applies to generated master passwords ("@/\ and quotes),
# so the value is safe inside connection URIs and shell-quoted commands.
_PASSWORD_SPECIALS = "-_!#%^*+="
PASSWORD_ALPHABET = string.ascii_letters + string.digits + _PASSWORD_SPECIALS

_SECRET_ID_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def generate_password(length: int, rng: Random | None = None) -> str:
    """Generate a password with at least one lowercase, uppercase and digit."""
    if length < MIN_PASSWORD_LENGTH:
        raise PasswordTooShortError(
            "password_length", length, f"must be at least {MIN_PASSWORD_LENGTH}"
        )
    rng = rng or secrets.SystemRandom()
    required = [
        rng.choice(string.ascii_lowercase),
        rng.choice(string.ascii_uppercase),
        rng.choice(string.digits),
    ]
    rest = [rng.choice(PASSWORD_ALPHABET) for _ in range(length - len(required))]
    chars = required + rest
    rng.shuffle(chars)
    return "".join(chars)


def secret_id_for(instance_name: str, user_name: str) -> str:
    """Secret Manager id for a user's password, e.g. ``orders-db-app-user-password``."""
    raw = f"{instance_name}-{user_name}-password".replace("_", "-")
    return _SECRET_ID_UNSAFE.sub("-", raw)


def resolve_secret(
    user_name: str,
    user: UserSpec,
    *,
    default_length: int,
    store_in_secret_manager: bool,
    instance_name: str,
    project_id: str,
    rng: Random | None = None,
) -> SecretResolution:
    """Decide how ``user_name`` gets its password."""
    field_path = f"users.{user_name}"

    if user.password_secret_ref:
        ref = user.password_secret_ref.strip()
        if not ref:
            raise InvalidSettingError(
                f"{field_path}.password_secret_ref", ref, "must not be empty"
            )
        logger.debug("User %s uses an explicit secret reference", user_name)
        return SecretResolution(source=SecretSource.EXPLICIT, secret_ref=ref)

    length = user.password_length if user.password_length is not None else default_length
    length_path = (
        f"{field_path}.password_length"
        if user.password_length is not None
        else "default_password_length"
    )
    if length < MIN_PASSWORD_LENGTH:
        raise PasswordTooShortError(
            length_path, length, f"must be at least {MIN_PASSWORD_LENGTH}"
        )
    if length > MAX_PASSWORD_LENGTH:
        raise InvalidSettingError(
            length_path, length, f"must be at most {MAX_PASSWORD_LENGTH}"
        )

    password = generate_password(length, rng)

    if store_in_secret_manager:
        secret_id = secret_id_for(instance_name, user_name)
        logger.debug("User %s: generated password stored as secret %s", user_name, secret_id)
        return SecretResolution(
            source=SecretSource.SECRET_MANAGER,
            password=password,
            secret_id=secret_id,
            secret_ref=f"projects/{project_id}/secrets/{secret_id}",
        )

    logger.debug("User %s: generated password (length %d)", user_name, length)
    return SecretResolution(source=SecretSource.GENERATED, password=password)
