"""
stackwire.cli.loader — Compose an app from the project config.

The app reference has the form ``module:attr``. ``attr`` is either an
App instance or a callable that takes an App and populates it.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

from stackwire.config import (
    ProjectConfig,
    Secrets,
    Target,
    load_config,
    resolve_target,
)
from stackwire.core.app import App
from stackwire.errors import ConfigurationError


def load_app(ref: str, target: Target | None = None,
             secrets: Secrets | None = None) -> App:
    """Import ``module:attr`` and return the composed App."""
    module_name, _, attr = (ref or "").partition(":")
    if not module_name or not attr:
        raise ConfigurationError(
            f"Invalid app reference: '{ref}'. Expected 'module:attr'."
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import app module '{module_name}': {e}") from e

    obj = getattr(module, attr, None)
    if isinstance(obj, App):
        if obj.target is None:
            obj.target = target
        return obj
    if callable(obj):
        app = App(target=target, secrets=secrets)
        result = obj(app)
        return result if isinstance(result, App) else app
    raise ConfigurationError(
        f"'{ref}' is neither an App nor a callable taking an App"
    )


def compose_project(
    project_dir: str | Path | None = None,
    app_ref: str | None = None,
    account: str | None = None,
    region: str | None = None,
    require_target: bool = False,
) -> tuple[App, ProjectConfig]:
    """Load stackwire.yaml, check named values and compose the app."""
    ws = Path(project_dir or ".").resolve()
    cfg = load_config(ws)

    ref = app_ref or cfg.app
    if not ref:
        raise ConfigurationError(
            "No app to compose. Set 'app' in stackwire.yaml or pass --app."
        )

    try:
        target = resolve_target(cfg, account=account, region=region)
    except ConfigurationError:
        if require_target:
            raise
        target = None

    secrets = Secrets()
    secrets.check(cfg.secrets)

    # Project modules are importable by name
    ws_str = str(ws)
    if ws_str not in sys.path:
        sys.path.insert(0, ws_str)

    return load_app(ref, target=target, secrets=secrets), cfg
