from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from app.application.dto.auth_dto import permission_list
from app.domain.constants import UserRole
from app.domain.errors import ProgrammingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpecialUserConfig:
    email: str
    name: str | None = None
    designation: str | None = None
    role: str | None = None
    custom_permissions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.role is not None and self.role not in UserRole.values():
            raise ProgrammingError(f"Unknown role {self.role!r} for special user {self.email!r}")
        object.__setattr__(self, "email", self.email.strip().lower())
        object.__setattr__(self, "custom_permissions", tuple(self.custom_permissions))


class SpecialUserRegistry:
    """Email-keyed profile overrides applied when a profile is hydrated."""

    def __init__(self, configs: Iterable[SpecialUserConfig] = ()) -> None:
        self._configs: dict[str, SpecialUserConfig] = {}
        for config in configs:
            if config.email in self._configs:
                raise ProgrammingError(f"Duplicate special user configuration: {config.email}")
            self._configs[config.email] = config

    def get_configuration(self, email: str) -> SpecialUserConfig | None:
        return self._configs.get(email.strip().lower())

    def has_special_configuration(self, email: str) -> bool:
        return email.strip().lower() in self._configs

    def configured_emails(self) -> list[str]:
        return list(self._configs)

    def apply_configuration(self, email: str, user_data: Mapping[str, Any]) -> dict[str, Any]:
        config = self.get_configuration(email)
        if config is None:
            return dict(user_data)

        merged = dict(user_data)
        for key in ("name", "designation", "role"):
            value = getattr(config, key)
            if value is not None:
                merged[key] = value
        if config.custom_permissions:
            settings = dict(merged.get("custom_settings") or {})
            current = list(permission_list(settings.get("special_permissions")))
            settings["special_permissions"] = list(dict.fromkeys([*current, *config.custom_permissions]))
            merged["custom_settings"] = settings
        logger.info("Applied special user configuration for %s", config.email)
        return merged


def load_special_users(path: Path | None) -> SpecialUserRegistry:
    """Read ``[{"email": ..., "role": ..., ...}, ...]`` from ``path``.

    A missing file gives an empty registry.
    """
    if path is None or not path.exists():
        return SpecialUserRegistry()
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ProgrammingError(f"Special users file must contain a list: {path}")
    configs = [
        SpecialUserConfig(
            email=str(item["email"]),
            name=item.get("name"),
            designation=item.get("designation"),
            role=item.get("role"),
            custom_permissions=tuple(item.get("custom_permissions") or ()),
        )
        for item in raw
    ]
    logger.info("Loaded %d special user configuration(s) from %s", len(configs), path)
    return SpecialUserRegistry(configs)
