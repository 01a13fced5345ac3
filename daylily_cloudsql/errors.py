"""Typed validation errors raised while resolving a deployment request.

Every error is a ``ValueError`` subclass carrying the offending field path
(e.g. ``users.admin_user.role``) and the rejected value, so the caller can
report precisely what was wrong.  None of them are transient: retrying the
same request always fails the same way.
"""

from __future__ import annotations

from typing import Any

_REDACTED = "<redacted>"


class PlanValidationError(ValueError):
    """Base class for all request validation failures."""

    kind = "PlanValidation"

    def __init__(
        self,
        field_path: str,
        value: Any = None,
        message: str | None = None,
        *,
        sensitive: bool = False,
    ) -> None:
        self.field_path = field_path
        self.value = _REDACTED if sensitive else value
        self.message = message or "invalid value"
        super().__init__(f"{self.kind} at {field_path}: {self.message} (got {self.value!r})")

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "field_path": self.field_path,
            "value": self.value,
            "message": self.message,
        }


class UnsupportedEngineVersionError(PlanValidationError):
    kind = "UnsupportedEngineVersion"


class UnknownRoleError(PlanValidationError):
    kind = "UnknownRole"


class InvalidCIDRError(PlanValidationError):
    kind = "InvalidCIDR"


class InvalidIdentifierError(PlanValidationError):
    kind = "InvalidIdentifier"


class DuplicateIdentifierError(PlanValidationError):
    kind = "DuplicateIdentifier"


class DiskSizeTooSmallError(PlanValidationError):
    kind = "DiskSizeTooSmall"


class AutoresizeLimitBelowDiskSizeError(PlanValidationError):
    kind = "AutoresizeLimitBelowDiskSize"


class MissingSizingFieldError(PlanValidationError):
    kind = "MissingSizingField"


class UnsupportedExtensionError(PlanValidationError):
    kind = "UnsupportedExtension"


class PasswordTooShortError(PlanValidationError):
    kind = "PasswordTooShort"


class MultipleFailoverTargetsError(PlanValidationError):
    kind = "MultipleFailoverTargets"


class UnknownPresetError(PlanValidationError):
    kind = "UnknownPreset"


class InvalidMachineTypeError(PlanValidationError):
    kind = "InvalidMachineType"


class InvalidSettingError(PlanValidationError):
    kind = "InvalidSetting"


class InvalidLabelError(PlanValidationError):
    kind = "InvalidLabel"


class ConflictingSettingsError(PlanValidationError):
    kind = "ConflictingSettings"


class InvalidRequestError(PlanValidationError):
    """The raw input does not have the shape of a request at all."""

    kind = "InvalidRequest"


__all__ = [
    "PlanValidationError",
    "UnsupportedEngineVersionError",
    "UnknownRoleError",
    "InvalidCIDRError",
    "InvalidIdentifierError",
    "DuplicateIdentifierError",
    "DiskSizeTooSmallError",
    "AutoresizeLimitBelowDiskSizeError",
    "MissingSizingFieldError",
    "UnsupportedExtensionError",
    "PasswordTooShortError",
    "MultipleFailoverTargetsError",
    "UnknownPresetError",
    "InvalidMachineTypeError",
    "InvalidSettingError",
    "InvalidLabelError",
    "ConflictingSettingsError",
    "InvalidRequestError",
]
