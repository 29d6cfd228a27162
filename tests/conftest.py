"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from types import SimpleNamespace
from dataclasses import dataclass, field
from fractions import Fraction
from pathlib import Path
from typing import Callable

import pytest

from flashswap.config import (
    AppConfig,
    ChainConfig,
    EmailConfig,
    ExecutorConfig,
    NotificationsConfig,
    SimulationConfig,
    TelegramConfig,
)
from flashswap.executor import FlashLiquidator
from flashswap.models import SettlementResult
from flashswap.registry import Registry
from flashswap.sim import ConstantProductPool, SimLendingLedger, SimProxyToken, SimToken
from flashswap.substrate import Substrate

ADMIN = "0x00000000000000000000000000000000000000a1"
EXECUTOR = "0x00000000000000000000000000000000000000e1"
BASE = "0x00000000000000000000000000000000000000b1"
QUOTE = "0x00000000000000000000000000000000000000b2"
PROXY = "0x00000000000000000000000000000000000000b3"
POOL = "0x00000000000000000000000000000000000000b4"
LEDGER = "0x00000000000000000000000000000000000000b5"
OTHER_POOL = "0x00000000000000000000000000000000000000b6"
INITIATOR = "0x00000000000000000000000000000000000000c1"
BORROWER = "0x00000000000000000000000000000000000000d1"
ATTACKER = "0x00000000000000000000000000000000000000ee"


# ---------------------------------------------------------------------------
# In-memory world
# ---------------------------------------------------------------------------


@dataclass
class World:
    substrate: Substrate
    base: SimToken
    quote: SimToken
    proxy: SimProxyToken
    pool: ConstantProductPool
    ledger: SimLendingLedger
    registry: Registry
    liquidator: FlashLiquidator
    events: list[SettlementResult] = field(default_factory=list)

    def balances(self) -> dict[str, int]:
        """Every balance the settlement can touch, keyed by token:holder."""
        holders = {
            "executor": EXECUTOR,
            "pool": POOL,
            "ledger": LEDGER,
            "initiator": INITIATOR,
            "proxy": PROXY,
        }
        snapshot: dict[str, int] = {}
        for token in (self.base, self.quote, self.proxy):
            for name, address in holders.items():
                snapshot[f"{token.symbol}:{name}"] = token.balance_of(address)
            snapshot[f"{token.symbol}:supply"] = token.total_supply
        return snapshot


def build_world(
    *,
    base_reserve: int = 50,
    quote_reserve: int = 1_000_000,
    debt: int = 500_000,
    collateral: int = 80,
    collateral_price: Fraction = Fraction(500_000, 61),
    liquidation_incentive: Fraction = Fraction(1),
    mint_fee_bps: int = 0,
    base_is_token0: bool = True,
) -> World:
    """Pool (50 base / 1,000,000 quote) and a borrower seizable at 61 base per 500,000 repaid."""
    substrate = Substrate()
    base = substrate.deploy(SimToken(substrate, BASE, "BASE"))
    quote = substrate.deploy(SimToken(substrate, QUOTE, "QUOTE"))
    proxy = substrate.deploy(
        SimProxyToken(substrate, PROXY, "PROXY", underlying=quote, mint_fee_bps=mint_fee_bps)
    )

    token0, token1 = (base, quote) if base_is_token0 else (quote, base)
    pool = substrate.deploy(ConstantProductPool(substrate, POOL, token0, token1))
    base.mint(POOL, base_reserve)
    quote.mint(POOL, quote_reserve)
    pool.sync()

    ledger = substrate.deploy(
        SimLendingLedger(
            substrate,
            LEDGER,
            collateral_token=base,
            collateral_price=collateral_price,
            liquidation_incentive=liquidation_incentive,
        )
    )
    ledger.list_debt_token(proxy)
    ledger.open_position(BORROWER, PROXY, debt, collateral)

    registry = Registry(ADMIN)
    registry.configure(ADMIN, pool, ledger)
    liquidator = substrate.deploy(FlashLiquidator(substrate, EXECUTOR, registry, base, quote))

    world = World(substrate, base, quote, proxy, pool, ledger, registry, liquidator)
    substrate.subscribe(world.events.append)
    return world


@pytest.fixture()
def addr() -> SimpleNamespace:
    """Well-known identities used by the in-memory world."""
    return SimpleNamespace(
        ADMIN=ADMIN,
        EXECUTOR=EXECUTOR,
        BASE=BASE,
        QUOTE=QUOTE,
        PROXY=PROXY,
        POOL=POOL,
        LEDGER=LEDGER,
        OTHER_POOL=OTHER_POOL,
        INITIATOR=INITIATOR,
        BORROWER=BORROWER,
        ATTACKER=ATTACKER,
    )


@pytest.fixture()
def make_world() -> Callable[..., World]:
    return build_world


@pytest.fixture()
def world() -> World:
    return build_world()


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_executor_config() -> ExecutorConfig:
    return ExecutorConfig(
        chain="ethereum",
        admin=ADMIN,
        address=EXECUTOR,
        base_token=BASE,
        quote_token=QUOTE,
        pool=POOL,
        ledger=LEDGER,
        pairs={"main": POOL, "backup": OTHER_POOL},
    )


@pytest.fixture()
def sample_simulation_config() -> SimulationConfig:
    return SimulationConfig(
        initiator=INITIATOR,
        borrower=BORROWER,
        debt_token=PROXY,
        base_reserve=50,
        quote_reserve=1_000_000,
        borrow_amount=500_000,
        min_profit=5,
        debt=500_000,
        collateral=80,
        collateral_price=Fraction(500_000, 61),
        collateralization_ratio=Fraction(3, 2),
        liquidation_incentive=Fraction(1),
    )


@pytest.fixture()
def sample_app_config(
    sample_executor_config: ExecutorConfig,
    sample_simulation_config: SimulationConfig,
) -> AppConfig:
    return AppConfig(
        executor=sample_executor_config,
        chains={
            "ethereum": ChainConfig(
                rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
                rpc_timeout=10,
            )
        },
        simulation=sample_simulation_config,
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
            email=EmailConfig(enabled=False),
        ),
    )


@pytest.fixture()
def sample_result() -> SettlementResult:
    return SettlementResult(
        initiator=INITIATOR,
        borrower=BORROWER,
        debt_token=PROXY,
        borrowed_amount=500_000,
        minted_amount=500_000,
        collateral_received=61,
        repayment_owed=51,
        profit=10,
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    chains:
      ethereum:
        rpc_endpoints: ["https://rpc.example.com"]
        rpc_timeout: 10
    executor:
      chain: ethereum
      admin: "{ADMIN}"
      address: "{EXECUTOR}"
      base_token: "{BASE}"
      quote_token: "{QUOTE}"
      pool: "{POOL}"
      ledger: "{LEDGER}"
      pairs:
        main: "{POOL}"
    simulation:
      initiator: "{INITIATOR}"
      borrower: "{BORROWER}"
      debt_token: "{PROXY}"
      base_reserve: 50
      quote_reserve: 1000000
      borrow_amount: 500000
      min_profit: 5
      debt: 500000
      collateral: 80
      collateral_price: "500000/61"
      collateralization_ratio: "3/2"
      liquidation_incentive: "1"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
      email:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
