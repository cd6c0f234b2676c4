"""
PropValet Configuration - YAML file with ${VAR} environment substitution.

Example YAML:
    database: ${DATABASE_URL}

    embedding:
      provider: openai
      model: text-embedding-3-small
      api_key: ${OPENAI_API_KEY}
      dimensions: 384

    memory:
      similarity_threshold: 0.4
      recall_limit: 20
      precedent_limit: 10

    email:
      api_key: ${RESEND_API_KEY}
      system_address: noreply@casaapp.com.au

    workflow:
      auto_approve_threshold: 500
      arrears_ladder:
        friendly_reminder: 1
        formal_notice: 7
        breach_notice: 14
        payment_plan_offer: 21
        tribunal_preparation: 28

    notifications:
      endpoint: https://push.example.com/send
      api_key: ${PUSH_API_KEY}

Thresholds, result caps and ladder offsets are product-tuning inputs; the
defaults below are the values the assistant has been running with.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from . import constants


def _substitute_env(raw: str, source: str) -> str:
    """Replace ${VAR} with environment variable values."""

    def _replace_env(match):
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ValueError(
                f"Environment variable '{var_name}' not set "
                f"(referenced in config file '{source}')"
            )
        return value

    return re.sub(r"\$\{(\w+)\}", _replace_env, raw)


def _section(d: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = d.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return value


@dataclass
class EmbeddingSettings:
    """Embedding backend settings."""
    provider: str = "openai"
    model: str = "text-embedding-3-small"
    api_key: str = ""
    base_url: str = ""
    dimensions: int = constants.EMBEDDING_DIMENSIONS
    max_chars: int = constants.EMBEDDING_MAX_CHARS

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EmbeddingSettings":
        return cls(
            provider=d.get("provider", "openai"),
            model=d.get("model", "text-embedding-3-small"),
            api_key=d.get("api_key", ""),
            base_url=d.get("base_url", ""),
            dimensions=int(d.get("dimensions", constants.EMBEDDING_DIMENSIONS)),
            max_chars=int(d.get("max_chars", constants.EMBEDDING_MAX_CHARS)),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass
class MemorySettings:
    """Semantic memory search tuning."""
    similarity_threshold: float = constants.SIMILARITY_THRESHOLD
    recall_limit: int = constants.RECALL_LIMIT
    precedent_limit: int = constants.PRECEDENT_LIMIT
    default_confidence: float = constants.DEFAULT_PREFERENCE_CONFIDENCE

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MemorySettings":
        settings = cls(
            similarity_threshold=float(d.get("similarity_threshold", constants.SIMILARITY_THRESHOLD)),
            recall_limit=int(d.get("recall_limit", constants.RECALL_LIMIT)),
            precedent_limit=int(d.get("precedent_limit", constants.PRECEDENT_LIMIT)),
            default_confidence=float(d.get("default_confidence", constants.DEFAULT_PREFERENCE_CONFIDENCE)),
        )
        if not -1.0 <= settings.similarity_threshold <= 1.0:
            raise ValueError("memory.similarity_threshold must be between -1 and 1")
        if not 0.0 <= settings.default_confidence <= 1.0:
            raise ValueError("memory.default_confidence must be between 0 and 1")
        return settings


@dataclass
class EmailSettings:
    """Outbound email provider and identity settings."""
    api_key: str = ""
    api_url: str = "https://api.resend.com/emails"
    system_address: str = constants.SYSTEM_EMAIL_ADDRESS
    system_name: str = constants.SYSTEM_EMAIL_NAME
    persona_domain: str = constants.PERSONA_EMAIL_DOMAIN

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EmailSettings":
        return cls(
            api_key=d.get("api_key", ""),
            api_url=d.get("api_url", "https://api.resend.com/emails"),
            system_address=d.get("system_address", constants.SYSTEM_EMAIL_ADDRESS),
            system_name=d.get("system_name", constants.SYSTEM_EMAIL_NAME),
            persona_domain=d.get("persona_domain", constants.PERSONA_EMAIL_DOMAIN),
        )


DEFAULT_ARREARS_LADDER: Dict[str, int] = {
    "friendly_reminder": 1,
    "formal_notice": 7,
    "breach_notice": 14,
    "payment_plan_offer": 21,
    "tribunal_preparation": 28,
}


@dataclass
class WorkflowSettings:
    """Workflow guidance tuning."""
    auto_approve_threshold: float = constants.DEFAULT_AUTO_APPROVE_THRESHOLD
    arrears_ladder: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_ARREARS_LADDER))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WorkflowSettings":
        ladder = dict(DEFAULT_ARREARS_LADDER)
        overrides = d.get("arrears_ladder") or {}
        unknown = set(overrides) - set(DEFAULT_ARREARS_LADDER)
        if unknown:
            raise ValueError(f"Unknown arrears ladder rung(s): {', '.join(sorted(unknown))}")
        ladder.update({k: int(v) for k, v in overrides.items()})
        offsets = [ladder[k] for k in DEFAULT_ARREARS_LADDER]
        if offsets != sorted(offsets):
            raise ValueError("workflow.arrears_ladder day offsets must be ascending")
        return cls(
            auto_approve_threshold=float(d.get("auto_approve_threshold", constants.DEFAULT_AUTO_APPROVE_THRESHOLD)),
            arrears_ladder=ladder,
        )


@dataclass
class NotificationSettings:
    """Push notification endpoint."""
    endpoint: str = ""
    api_key: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NotificationSettings":
        return cls(endpoint=d.get("endpoint", ""), api_key=d.get("api_key", ""))


@dataclass
class PropValetConfig:
    """Complete application configuration."""
    database: Optional[str] = None
    embedding: EmbeddingSettings = field(default_factory=EmbeddingSettings)
    memory: MemorySettings = field(default_factory=MemorySettings)
    email: EmailSettings = field(default_factory=EmailSettings)
    workflow: WorkflowSettings = field(default_factory=WorkflowSettings)
    notifications: NotificationSettings = field(default_factory=NotificationSettings)

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "PropValetConfig":
        d = d or {}
        return cls(
            database=d.get("database"),
            embedding=EmbeddingSettings.from_dict(_section(d, "embedding")),
            memory=MemorySettings.from_dict(_section(d, "memory")),
            email=EmailSettings.from_dict(_section(d, "email")),
            workflow=WorkflowSettings.from_dict(_section(d, "workflow")),
            notifications=NotificationSettings.from_dict(_section(d, "notifications")),
        )


def load_config(path: str) -> PropValetConfig:
    """Read a YAML config file into a PropValetConfig."""
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()
    data = yaml.safe_load(_substitute_env(raw, path))
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Config file '{path}' must contain a mapping")
    return PropValetConfig.from_dict(data)
