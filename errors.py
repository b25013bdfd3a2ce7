"""Error taxonomy shared by the catalog, inventory and storage layers."""
import config


class AssetTrackerError(Exception):
    """Base class for every error surfaced to the user."""


class ValidationError(AssetTrackerError):
    """Caller input failed a precondition. Nothing was written."""


class StateError(AssetTrackerError):
    """An operation ran without the state it requires (e.g. no open session)."""


class NotFoundError(AssetTrackerError):
    """A department, session or asset identifier does not exist."""


class StorageError(AssetTrackerError):
    """The persistence layer itself failed."""


def user_message(exc):
    """Generic message for the UI. Validation details are safe to show as-is."""
    for cls in type(exc).__mro__:
        if cls.__name__ in config.ERROR_MESSAGES:
            base = config.ERROR_MESSAGES[cls.__name__]
            break
    else:
        base = config.ERROR_MESSAGES["AssetTrackerError"]

    if isinstance(exc, (ValidationError, StateError)) and str(exc):
        return f"{base}: {exc}"
    return base
