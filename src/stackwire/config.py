"""
stackwire.config — Project config and named values.

stackwire.yaml (project directory):

    app: stackwire.apps.discord_bot:compose
    target:
      account: "028071413917"
      region: us-east-1
    secrets:
      - DISCORD_BOT_TOKEN
      - RIOT_API_KEY

Target resolution priority:
    --account/--region flag > STACKWIRE_ACCOUNT/STACKWIRE_REGION env var > file

Secrets are read from the environment by key name. A missing value is
a ConfigurationError raised while composing, never while deploying.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

import yaml

from stackwire.errors import ConfigurationError


CONFIG_FILE = "stackwire.yaml"

_ACCOUNT = re.compile(r"^\d{12}$")
_REGION = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d$")


@dataclass(frozen=True)
class Target:
    """Account/region a plan is deployed to."""
    account: str
    region: str

    def __post_init__(self):
        if not _ACCOUNT.match(str(self.account)):
            raise ConfigurationError(
                f"Invalid account id: '{self.account}'. Expected 12 digits."
            )
        if not _REGION.match(str(self.region)):
            raise ConfigurationError(f"Invalid region: '{self.region}'")


@dataclass
class ProjectConfig:
    """Parsed stackwire.yaml."""
    app: str | None = None
    account: str | None = None
    region: str | None = None
    secrets: list[str] = field(default_factory=list)
    path: Path | None = None


def config_path(project_dir: str | Path | None = None) -> Path:
    return Path(project_dir or ".").resolve() / CONFIG_FILE


def load_config(project_dir: str | Path | None = None) -> ProjectConfig:
    """Read stackwire.yaml. A missing file yields an empty config."""
    cp = config_path(project_dir)
    if not cp.exists():
        return ProjectConfig()

    with open(cp) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {cp}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{cp} must be a YAML mapping")

    target = data.get("target") or {}
    if not isinstance(target, dict):
        raise ConfigurationError("target must be a mapping")

    secrets = data.get("secrets") or []
    if not isinstance(secrets, list) or not all(isinstance(s, str) for s in secrets):
        raise ConfigurationError("secrets must be a list of names")

    account = target.get("account")
    return ProjectConfig(
        app=data.get("app"),
        account=str(account) if account is not None else None,
        region=target.get("region"),
        secrets=list(secrets),
        path=cp,
    )


def resolve_target(
    cfg: ProjectConfig,
    account: str | None = None,
    region: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Target:
    """Resolve the deployment target.

    Priority: flag > env var > config file
    """
    env = os.environ if environ is None else environ
    acct = account or env.get("STACKWIRE_ACCOUNT", "").strip() or cfg.account
    reg = region or env.get("STACKWIRE_REGION", "").strip() or cfg.region
    if not acct:
        raise ConfigurationError(
            "No target account. Set target.account in stackwire.yaml, "
            "STACKWIRE_ACCOUNT or --account."
        )
    if not reg:
        raise ConfigurationError(
            "No target region. Set target.region in stackwire.yaml, "
            "STACKWIRE_REGION or --region."
        )
    return Target(account=acct, region=reg)


class Secrets:
    """Named values sourced from the environment."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = os.environ if environ is None else environ

    def require(self, name: str) -> str:
        value = self._environ.get(name, "")
        if not value:
            raise ConfigurationError(f"Required value '{name}' is not set in the environment")
        return value

    def get(self, name: str, default: str | None = None) -> str | None:
        return self._environ.get(name) or default

    def check(self, names: Iterable[str]) -> None:
        """Raise if any name is missing, listing every missing one."""
        missing = [n for n in names if not self._environ.get(n)]
        if missing:
            raise ConfigurationError(
                f"Required values not set in the environment: {', '.join(missing)}"
            )
