"""
Profile operations.

provision_profile runs with elevated privilege from the User post_save
receiver; every other write is a policy-checked row write.
"""
import logging

from django.core.exceptions import ValidationError

from core.rows import insert_row, update_row

from .models import AppRole, Profile

logger = logging.getLogger(__name__)

PROFILE_EDITABLE_FIELDS = ("email", "full_name")
SIGNUP_METADATA_FIELDS = ("full_name", "role")


class InvalidRole(ValidationError):
    """Signup metadata carried a role outside AppRole."""


def signup_metadata(data):
    """Pick the metadata keys present in submitted signup data."""
    return {
        key: data[key]
        for key in SIGNUP_METADATA_FIELDS
        if data.get(key) not in (None, "")
    }


def _metadata_text(metadata, key):
    value = metadata.get(key)
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def provision_profile(user):
    """
    Create the Profile for a newly created identity.

    full_name falls back to "" and role to "user" when absent; a role that is
    present but not a valid AppRole raises InvalidRole instead of defaulting.
    """
    metadata = user.metadata or {}
    full_name = _metadata_text(metadata, "full_name") or ""
    role = _metadata_text(metadata, "role")
    if role is None:
        role = AppRole.USER
    elif role not in AppRole.values:
        raise InvalidRole(
            {"role": f"Invalid role {role!r}; expected one of {', '.join(AppRole.values)}."}
        )

    profile = Profile.objects.create(
        user=user,
        email=user.email,
        full_name=full_name,
        role=role,
    )
    logger.info("Provisioned profile %s (role=%s)", user.pk, role)
    return profile


def create_profile(actor, user_id, email, full_name=None):
    """Insert a profile as actor. Only one's own profile may be inserted."""
    profile = Profile(user_id=user_id, email=email, full_name=full_name)
    return insert_row(actor, profile)


def update_profile(actor, profile, **changes):
    """Owner edits email / full_name."""
    unknown = set(changes) - set(PROFILE_EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            {name: "This field cannot be edited." for name in sorted(unknown)}
        )
    profile = update_row(actor, profile, **changes)
    logger.info("Profile %s updated (%s)", profile.pk, ", ".join(sorted(changes)))
    return profile


def set_role(actor, profile, role):
    """Switch the profile role (used when electing merchant status)."""
    if role not in AppRole.values:
        raise InvalidRole({"role": f"Invalid role {role!r}."})
    return update_row(actor, profile, role=role)
