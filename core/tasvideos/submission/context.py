"""Access to the Flask application config and globals, when available."""

import os
from typing import Any, Mapping, Optional

from flask import Flask, current_app, g, has_app_context


def get_application_config(app: Optional[Flask] = None) -> Mapping:
    """
    Get the configuration of ``app`` or of the current application.

    Falls back to the process environment outside of an application context.
    """
    if app is not None:
        return app.config
    if has_app_context():
        return current_app.config
    return os.environ


def get_application_global() -> Optional[Any]:
    """Get the Flask ``g`` object, or ``None`` outside an app context."""
    if has_app_context():
        return g
    return None


def get_setting(name: str, default: Any) -> Any:
    """Read a setting, coerced to the type of ``default``."""
    value = get_application_config().get(name, default)
    if value is None or default is None or isinstance(value, type(default)):
        return value
    if isinstance(default, bool):
        return bool(int(value))
    return type(default)(value)
