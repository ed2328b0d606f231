"""
Configuration management (SSOT).

This module defines ALL configuration for the auto_journal application.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- The classification fallback ids must reference existing master data
- The AI classifier is optional; when disabled every unmatched transaction
  degrades to the configured fallback classification
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class LLMConfig:
    """AI classifier (Ollama) configuration.

    - enabled: Master switch (default OFF)
    - ollama_url: Can be localhost, LAN IP, or remote URL
    - auth_header: Optional auth header for proxied deployments
    - max_concurrent: Concurrency limiter for batch uploads
    """

    enabled: bool = False
    ollama_url: str = "http://localhost:11434"
    # Format: "Bearer <token>" or "Header-Name: value"
    auth_header: str | None = None
    model: str = "qwen2.5:7b-instruct-q4_K_M"
    timeout_seconds: int = 30
    max_concurrent: int = 2

    def is_remote(self) -> bool:
        """Check if Ollama URL is remote (not localhost)."""
        url_lower = self.ollama_url.lower()
        return not any(
            local in url_lower
            for local in ["localhost", "127.0.0.1", "::1", "host.docker.internal"]
        )


@dataclass
class ClassificationConfig:
    """Fallback classification used when no rule matches and the AI fails."""

    # 雑費 (misc expense)
    default_account_item_id: str = "acc-599"
    # 課税仕入 10%
    taxable_tax_category_id: str = "tax-standard-10"
    # 対象外
    out_of_scope_tax_category_id: str = "tax-out-of-scope"
    fallback_confidence: float = 0.5


@dataclass
class BatchConfig:
    """Batch upload processing settings."""

    # Per-file OCR timeout (seconds)
    ocr_timeout_seconds: int = 30
    allowed_mime_types: list[str] = field(
        default_factory=lambda: ["image/jpeg", "image/png", "application/pdf"]
    )
    # 10 MB, same limit as the upload endpoint
    max_file_size: int = 10 * 1024 * 1024


@dataclass
class Config:
    """Application configuration (SSOT).

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    llm: LLMConfig = field(default_factory=LLMConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    state_db_path: Path = field(default_factory=lambda: Path("data/state.db"))

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if self.llm.enabled and not self.llm.ollama_url:
            errors.append("llm.ollama_url is required when LLM is enabled")
        if self.llm.timeout_seconds <= 0:
            errors.append("llm.timeout_seconds must be positive")
        if self.llm.max_concurrent < 1:
            errors.append("llm.max_concurrent must be at least 1")

        if not self.classification.default_account_item_id:
            errors.append("classification.default_account_item_id is required")
        if not self.classification.taxable_tax_category_id:
            errors.append("classification.taxable_tax_category_id is required")
        if not self.classification.out_of_scope_tax_category_id:
            errors.append("classification.out_of_scope_tax_category_id is required")
        if not 0.0 <= self.classification.fallback_confidence <= 1.0:
            errors.append("classification.fallback_confidence must be within [0, 1]")

        if self.batch.ocr_timeout_seconds <= 0:
            errors.append("batch.ocr_timeout_seconds must be positive")

        return errors


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - AUTO_JOURNAL_LLM_ENABLED (true/false)
    - OLLAMA_URL
    - OLLAMA_AUTH_HEADER
    - OLLAMA_MODEL
    - OLLAMA_TIMEOUT (request timeout in seconds)
    - AUTO_JOURNAL_OCR_TIMEOUT (per-file OCR timeout in seconds)
    - AUTO_JOURNAL_DB (state database path)
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    # LLM config
    llm_data = data.get("llm", {})
    llm_enabled_env = os.environ.get("AUTO_JOURNAL_LLM_ENABLED", "").lower()
    llm_enabled = llm_data.get("enabled", False)
    if llm_enabled_env == "true":
        llm_enabled = True
    elif llm_enabled_env == "false":
        llm_enabled = False

    llm = LLMConfig(
        enabled=llm_enabled,
        ollama_url=os.environ.get(
            "OLLAMA_URL", llm_data.get("ollama_url", "http://localhost:11434")
        ),
        auth_header=os.environ.get("OLLAMA_AUTH_HEADER", llm_data.get("auth_header")),
        model=os.environ.get("OLLAMA_MODEL", llm_data.get("model", "qwen2.5:7b-instruct-q4_K_M")),
        timeout_seconds=int(os.environ.get("OLLAMA_TIMEOUT", llm_data.get("timeout_seconds", 30))),
        max_concurrent=llm_data.get("max_concurrent", 2),
    )

    # Classification fallback
    cls_data = data.get("classification", {})
    classification = ClassificationConfig(
        default_account_item_id=cls_data.get("default_account_item_id", "acc-599"),
        taxable_tax_category_id=cls_data.get("taxable_tax_category_id", "tax-standard-10"),
        out_of_scope_tax_category_id=cls_data.get(
            "out_of_scope_tax_category_id", "tax-out-of-scope"
        ),
        fallback_confidence=float(cls_data.get("fallback_confidence", 0.5)),
    )

    # Batch processing
    batch_data = data.get("batch", {})
    ocr_timeout = batch_data.get("ocr_timeout_seconds", 30)
    ocr_timeout_env = os.environ.get("AUTO_JOURNAL_OCR_TIMEOUT", "")
    if ocr_timeout_env:
        try:
            ocr_timeout = int(ocr_timeout_env)
        except ValueError:
            pass  # Keep configured value

    batch = BatchConfig(
        ocr_timeout_seconds=ocr_timeout,
        allowed_mime_types=batch_data.get(
            "allowed_mime_types", ["image/jpeg", "image/png", "application/pdf"]
        ),
        max_file_size=batch_data.get("max_file_size", 10 * 1024 * 1024),
    )

    state_db = os.environ.get("AUTO_JOURNAL_DB", data.get("state_db_path", "data/state.db"))

    return Config(
        llm=llm,
        classification=classification,
        batch=batch,
        state_db_path=Path(state_db),
    )


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# auto-journal configuration
#
# Classification precedence:
#   client rules -> industry rules -> shared rules -> AI classifier -> fallback

# AI classifier (Ollama)
llm:
  enabled: false                           # Set to true to enable AI classification
  ollama_url: "http://localhost:11434"     # Ollama server URL (localhost, LAN, or remote)
  auth_header: null                        # Optional auth header for proxied deployments
  model: "qwen2.5:7b-instruct-q4_K_M"
  timeout_seconds: 30
  max_concurrent: 2                        # Max concurrent AI requests

# Fallback used when no rule matches and the AI classifier fails
classification:
  default_account_item_id: "acc-599"               # 雑費
  taxable_tax_category_id: "tax-standard-10"       # 課税仕入 10% (tax amount present)
  out_of_scope_tax_category_id: "tax-out-of-scope"  # 対象外 (no tax amount)
  fallback_confidence: 0.5

# Batch upload processing
batch:
  ocr_timeout_seconds: 30
  allowed_mime_types: ["image/jpeg", "image/png", "application/pdf"]
  max_file_size: 10485760

# State database path
state_db_path: "data/state.db"
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
