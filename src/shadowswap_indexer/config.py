"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from shadowswap_indexer.models.config import (
    DeliveryPolicy,
    IndexerConfig,
    SelectorConfig,
)
from shadowswap_indexer.starknet.selectors import parse_felt, resolve_selectors

FINALITY_LEVELS = ("accepted",)


class ConfigurationError(Exception):
    """Required configuration is missing or invalid. Fatal for the whole run."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


def _as_int(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "SHADOWSWAP_",
) -> IndexerConfig:
    """Load indexer configuration from TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (RELAYER_URL, HMAC_SECRET, SHADOWSWAP_*)
        2. TOML config file
        3. Defaults from IndexerConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = IndexerConfig()

    # ── Indexer section ────────────────────────────────────
    indexer = raw.get("indexer", {})
    if v := indexer.get("poll_interval"):
        cfg.poll_interval = int(v)
    if v := indexer.get("error_backoff"):
        cfg.error_backoff = int(v)
    if v := indexer.get("log_level"):
        cfg.log_level = str(v)
    if v := indexer.get("max_block_range"):
        cfg.max_block_range = int(v)

    # ── Stream section ─────────────────────────────────────
    stream = raw.get("stream", {})
    if v := stream.get("stream_url"):
        cfg.stream_url = str(v)
    if (v := stream.get("starting_block")) is not None:
        cfg.starting_block = _as_int(v, "starting_block")
    if v := stream.get("finality"):
        cfg.finality = str(v)

    # ── Pools section ──────────────────────────────────────
    pools = raw.get("pools", {})
    if v := pools.get("fast_pool_address"):
        cfg.fast_pool_address = str(v)
    if v := pools.get("standard_pool_address"):
        cfg.standard_pool_address = str(v)

    # ── Selectors section ──────────────────────────────────
    selectors = raw.get("selectors", {})
    cfg.selectors = SelectorConfig(
        deposit=str(selectors.get("deposit", "")),
        htlc_created=str(selectors.get("htlc_created", "")),
        withdrawal=str(selectors.get("withdrawal", "")),
    )

    # ── Relayer section ────────────────────────────────────
    relayer = raw.get("relayer", {})
    if v := relayer.get("relayer_url"):
        cfg.relayer_url = str(v)
    cfg.delivery = DeliveryPolicy(
        max_attempts=_as_int(relayer.get("max_attempts", 3), "max_attempts"),
        retry_delay=float(relayer.get("retry_delay", 5.0)),
        timeout=float(relayer.get("timeout", 60.0)),
    )

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    # Relayer credentials are shared with the relayer deployment, so unprefixed.
    if url := os.environ.get("RELAYER_URL"):
        cfg.relayer_url = url
    if secret := os.environ.get("HMAC_SECRET"):
        cfg.hmac_secret = secret

    if url := os.environ.get(f"{env_prefix}STREAM_URL"):
        cfg.stream_url = url
    if block := os.environ.get(f"{env_prefix}STARTING_BLOCK"):
        cfg.starting_block = _as_int(block, f"{env_prefix}STARTING_BLOCK")
    if addr := os.environ.get(f"{env_prefix}FAST_POOL_ADDRESS"):
        cfg.fast_pool_address = addr
    if addr := os.environ.get(f"{env_prefix}STANDARD_POOL_ADDRESS"):
        cfg.standard_pool_address = addr
    if sel := os.environ.get(f"{env_prefix}DEPOSIT_SELECTOR"):
        cfg.selectors.deposit = sel
    if sel := os.environ.get(f"{env_prefix}HTLC_CREATED_SELECTOR"):
        cfg.selectors.htlc_created = sel
    if sel := os.environ.get(f"{env_prefix}WITHDRAWAL_SELECTOR"):
        cfg.selectors.withdrawal = sel
    if path := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = path

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg


def missing_relayer_variables(cfg: IndexerConfig) -> list[str]:
    """Names of the relayer credentials that are not set."""
    missing = []
    if not cfg.relayer_url:
        missing.append("RELAYER_URL")
    if not cfg.hmac_secret:
        missing.append("HMAC_SECRET")
    return missing


def validate_config(cfg: IndexerConfig) -> None:
    """Raise ConfigurationError naming every missing required value."""
    missing = missing_relayer_variables(cfg)
    if not cfg.stream_url:
        missing.append("STREAM_URL")
    if cfg.starting_block < 0:
        missing.append("STARTING_BLOCK")
    if not cfg.fast_pool_address:
        missing.append("FAST_POOL_ADDRESS")
    if not cfg.standard_pool_address:
        missing.append("STANDARD_POOL_ADDRESS")

    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}",
            missing=missing,
        )

    if cfg.finality not in FINALITY_LEVELS:
        raise ConfigurationError(
            f"Unsupported finality level {cfg.finality!r} "
            f"(expected one of {', '.join(FINALITY_LEVELS)})"
        )
    try:
        fast = parse_felt(cfg.fast_pool_address)
        standard = parse_felt(cfg.standard_pool_address)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid pool address: {exc}") from exc
    if fast == standard:
        raise ConfigurationError("Fast and standard pool addresses must differ")

    try:
        resolve_selectors(cfg.selectors)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid selector override: {exc}") from exc

    if cfg.delivery.max_attempts < 1:
        raise ConfigurationError(
            f"max_attempts must be at least 1, got {cfg.delivery.max_attempts}"
        )
