"""Loading of provider settings from the environment and of plan blobs."""

import json
import os
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from search_broker.utils.errors import ConfigurationError
from .models import DomainSettings, ProviderSettings

REGION_ENV = "AWS_REGION"
ACCOUNT_ID_ENV = "AWS_ACCOUNT_ID"
SECURITY_GROUP_ENV = "AWS_SECURITY_GROUP_ID"
SUBNET_ENV = "AWS_SUBNET_ID"

REQUIRED_ENV_VARS = (REGION_ENV, ACCOUNT_ID_ENV)


def format_errors(message: str, errors: List[Dict]) -> str:
    """Format validation errors for display."""
    if not errors:
        return message

    error_lines = [message, ""]
    for error in errors:
        location = " -> ".join(str(loc) for loc in error.get("loc", []))
        msg = error.get("msg", "Unknown error")
        error_lines.append(f"  - {location}: {msg}")

    return "\n".join(error_lines)


def load_settings(environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> ProviderSettings:
    """Build provider settings from environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ``
        **overrides: Explicit setting values that take precedence

    Returns:
        Validated ProviderSettings

    Raises:
        ConfigurationError: If a required variable is missing or a value is invalid
    """
    environ = os.environ if environ is None else environ

    missing = [
        {"loc": [name], "msg": f"Unable to find {name} environment variable"}
        for name in REQUIRED_ENV_VARS
        if not environ.get(name) and _override_key(name) not in overrides
    ]
    if missing:
        raise ConfigurationError(
            format_errors("Provider configuration is incomplete", missing),
            suggestions=[f"Set {', '.join(REQUIRED_ENV_VARS)} for the broker process"],
        )

    data = {
        "region": environ.get(REGION_ENV),
        "account_id": environ.get(ACCOUNT_ID_ENV),
        "security_group_id": environ.get(SECURITY_GROUP_ENV),
        "subnet_ids": environ.get(SUBNET_ENV),
    }
    data.update(overrides)

    try:
        return ProviderSettings(**data)
    except ValidationError as e:
        errors = [{"loc": list(error["loc"]), "msg": error["msg"]} for error in e.errors()]
        raise ConfigurationError(
            format_errors(f"Provider configuration failed validation with {len(errors)} error(s)", errors),
            cause=e,
        ) from e


def _override_key(env_name: str) -> str:
    return {REGION_ENV: "region", ACCOUNT_ID_ENV: "account_id"}[env_name]


def parse_domain_settings(raw: str) -> DomainSettings:
    """Decode a plan's private configuration blob.

    Raises:
        ConfigurationError: If the blob is not a valid JSON object or fails validation
    """
    try:
        data = json.loads(raw) if raw else {}
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Plan configuration is not valid JSON: {e}", cause=e) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Plan configuration must be a JSON object")

    try:
        return DomainSettings.model_validate(data)
    except ValidationError as e:
        errors = [{"loc": list(error["loc"]), "msg": error["msg"]} for error in e.errors()]
        raise ConfigurationError(
            format_errors("Plan configuration failed validation", errors),
            cause=e,
        ) from e
