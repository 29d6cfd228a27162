"""Loads config.yaml, interpolates env vars and validates the result."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from fractions import Fraction
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .addresses import is_address

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class ExecutorConfig:
    chain: str = ""
    admin: str = ""
    address: str = ""
    base_token: str = ""
    quote_token: str = ""
    pool: str = ""
    ledger: str = ""
    pairs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SimulationConfig:
    initiator: str = ""
    borrower: str = ""
    debt_token: str = ""
    base_reserve: int = 0
    quote_reserve: int = 0
    borrow_amount: int = 0
    min_profit: int = 0
    debt: int = 0
    collateral: int = 0
    collateral_price: Fraction = Fraction(1)
    collateralization_ratio: Fraction = Fraction(3, 2)
    liquidation_incentive: Fraction = Fraction(11, 10)
    mint_fee_bps: int = 0


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class EmailConfig:
    enabled: bool = False
    alert_email: str = ""
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender_email: str = ""
    sender_password: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


@dataclass(frozen=True)
class AppConfig:
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    simulation: SimulationConfig | None = None
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        chains[name] = ChainConfig(
            rpc_endpoints=tuple(e for e in cfg.get("rpc_endpoints", []) if e),
            rpc_timeout=int(cfg.get("rpc_timeout", 30)),
        )
    return chains


def _build_executor(raw: dict[str, Any]) -> ExecutorConfig:
    return ExecutorConfig(
        chain=raw.get("chain", ""),
        admin=raw.get("admin", ""),
        address=raw.get("address", ""),
        base_token=raw.get("base_token", ""),
        quote_token=raw.get("quote_token", ""),
        pool=raw.get("pool", ""),
        ledger=raw.get("ledger", ""),
        pairs={str(k): str(v) for k, v in raw.get("pairs", {}).items()},
    )


def _build_simulation(raw: dict[str, Any] | None) -> SimulationConfig | None:
    if not raw:
        return None
    return SimulationConfig(
        initiator=raw.get("initiator", ""),
        borrower=raw.get("borrower", ""),
        debt_token=raw.get("debt_token", ""),
        base_reserve=int(raw.get("base_reserve", 0)),
        quote_reserve=int(raw.get("quote_reserve", 0)),
        borrow_amount=int(raw.get("borrow_amount", 0)),
        min_profit=int(raw.get("min_profit", 0)),
        debt=int(raw.get("debt", 0)),
        collateral=int(raw.get("collateral", 0)),
        # Rationals are written as strings ("3/2", "1.1") to stay exact.
        collateral_price=Fraction(str(raw.get("collateral_price", 1))),
        collateralization_ratio=Fraction(str(raw.get("collateralization_ratio", "3/2"))),
        liquidation_incentive=Fraction(str(raw.get("liquidation_incentive", "11/10"))),
        mint_fee_bps=int(raw.get("mint_fee_bps", 0)),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    em = raw.get("email", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
        email=EmailConfig(
            enabled=bool(em.get("enabled", False)),
            alert_email=em.get("alert_email", ""),
            smtp_server=em.get("smtp_server", "smtp.gmail.com"),
            smtp_port=int(em.get("smtp_port", 587)),
            sender_email=em.get("sender_email", ""),
            sender_password=em.get("sender_password", ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        executor=_build_executor(raw.get("executor", {})),
        chains=_build_chains(raw.get("chains", {})),
        simulation=_build_simulation(raw.get("simulation")),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    ex = cfg.executor
    for name in ("admin", "address", "base_token", "quote_token", "pool", "ledger"):
        value = getattr(ex, name)
        if not is_address(value):
            raise ValueError(f"executor.{name} is not a valid address: {value!r}")
    if ex.base_token.lower() == ex.quote_token.lower():
        raise ValueError("executor.base_token and executor.quote_token must differ")
    if ex.chain and ex.chain not in cfg.chains:
        raise ValueError(f"Executor references unknown chain '{ex.chain}'")
    for pool_id, address in ex.pairs.items():
        if not is_address(address):
            raise ValueError(f"Pool '{pool_id}' has an invalid address: {address!r}")

    sim = cfg.simulation
    if sim is None:
        return
    for name in ("initiator", "borrower", "debt_token"):
        value = getattr(sim, name)
        if not is_address(value):
            raise ValueError(f"simulation.{name} is not a valid address: {value!r}")
    if sim.borrow_amount <= 0:
        raise ValueError("simulation.borrow_amount must be positive")
    if sim.quote_reserve <= sim.borrow_amount:
        raise ValueError("simulation.quote_reserve must exceed borrow_amount")
    if sim.collateral_price <= 0:
        raise ValueError("simulation.collateral_price must be positive")
    if not 0 <= sim.mint_fee_bps < 10_000:
        raise ValueError("simulation.mint_fee_bps must be in [0, 10000)")
