"""Seed prices and per-token parameters for the quote simulator."""

from .registry import BONK, JLP, JUP, SOL, USDC

# Rough USD prices for the default registry (as of project creation)
SEED_PRICES: dict[str, float] = {
    SOL.address: 150.00,
    USDC.address: 1.00,
    JUP.address: 0.90,
    JLP.address: 4.50,
    BONK.address: 0.00002,
}

# Per-token GBM parameters
# sigma: annualized volatility, mu: annualized drift
TOKEN_PARAMS: dict[str, dict[str, float]] = {
    SOL.address: {"sigma": 0.80, "mu": 0.10},
    USDC.address: {"sigma": 0.01, "mu": 0.0},  # Stablecoin
    JUP.address: {"sigma": 1.00, "mu": 0.05},
    JLP.address: {"sigma": 0.45, "mu": 0.15},  # LP basket, tracks SOL loosely
    BONK.address: {"sigma": 1.50, "mu": 0.0},  # Memecoin
}

# Default parameters for mints not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 1.00, "mu": 0.0}

# Correlation groups for the simulator's Cholesky decomposition
CORRELATION_GROUPS: dict[str, set[str]] = {
    "solana": {SOL.address, JUP.address, JLP.address, BONK.address},
    "stable": {USDC.address},
}

INTRA_SOLANA_CORR = 0.6  # Ecosystem tokens move with SOL
STABLE_CORR = 0.0  # Stablecoins ignore the market
DEFAULT_CORR = 0.3  # Unknown mints
