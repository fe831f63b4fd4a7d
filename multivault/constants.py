"""Protocol constants — integer percentages and fixed-point scales."""

# Fixed point
ACCOUNTING_DECIMALS = 18  # debt and USD values always carry 18 fractional digits
ACCOUNTING_SCALE = 10**ACCOUNTING_DECIMALS
UINT256_MAX = 2**256 - 1

# Largest token precision whose scale factor still fits in a uint256
MAX_ASSET_DECIMALS = 77

# Ratios, all in whole percent (150 = 150%)
PERCENT = 100
MIN_MARGIN_RATIO = 110
LIQUIDATION_THRESHOLD = 100  # health ratio below this is liquidatable
LIQUIDATION_BONUS = 10  # extra collateral paid to the liquidator
LIQUIDATION_FEE = 5  # protocol slice of the seized collateral

# Health ratio reported for a position without debt
INFINITE_HEALTH = UINT256_MAX
