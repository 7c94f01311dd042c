"""Merging of stored account credentials with per-run overrides."""

from typing import Any, Mapping, Optional, Union

from school_auto_apply.engine.models import UserLoginInput

LoginSource = Union[UserLoginInput, Mapping[str, Any]]


def _get(source: Optional[LoginSource], key: str) -> Any:
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def merge_user_login(
    account: Optional[LoginSource],
    override: Optional[LoginSource] = None
) -> Optional[UserLoginInput]:
    """
    Merge an account record with an explicit per-run override.

    The override wins field by field whenever it carries a value (an empty
    string counts as a value). Password and extra values only ever come from
    the override; the account store never supplies a password here.

    Returns:
        Merged credentials, or None when neither input is present
    """
    if account is None and override is None:
        return None

    def pick(key: str) -> Any:
        value = _get(override, key)
        return value if value is not None else _get(account, key)

    return UserLoginInput(
        email=pick("email"),
        username=pick("username"),
        password=_get(override, "password"),
        extra=_get(override, "extra"),
    )
