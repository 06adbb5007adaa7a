from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import pandas as pd
import structlog

from rebalancer.domain.assets import AssetClass
from rebalancer.exceptions import ClassificationError, UnknownSymbolError

logger = structlog.get_logger(__name__)

DEFAULT_CLASSIFICATIONS: dict[str, AssetClass] = {
    "VTSAX": AssetClass.US_TOTAL,
    "VFIAX": AssetClass.US_TOTAL,
    "FZROX": AssetClass.US_TOTAL,
    "VSMAX": AssetClass.US_SMALL,
    "VIMAX": AssetClass.US_SMALL,
    "FZILX": AssetClass.INTL_STOCKS,
    "VTIAX": AssetClass.INTL_STOCKS,
    "VBTLX": AssetClass.US_BONDS,
    "VGSLX": AssetClass.REIT,
    "FZFXX": AssetClass.CASH,  # Fidelity core position
    "VMFXX": AssetClass.CASH,  # Vanguard settlement fund
    "VFFVX": AssetClass.TARGET,  # Target 2055
    "VTTSX": AssetClass.TARGET,  # Target 2060
}


class AssetClassifications:
    """Maps ticker symbols to asset classes."""

    def __init__(self, by_symbol: Mapping[str, AssetClass] | None = None) -> None:
        source = DEFAULT_CLASSIFICATIONS if by_symbol is None else by_symbol
        self._by_symbol = {symbol.upper(): asset_class for symbol, asset_class in source.items()}

    def __len__(self) -> int:
        return len(self._by_symbol)

    def __contains__(self, symbol: str) -> bool:
        return symbol.upper() in self._by_symbol

    def classify(self, symbol: str) -> AssetClass:
        try:
            return self._by_symbol[symbol.upper()]
        except KeyError:
            raise UnknownSymbolError(f"Unknown fund symbol {symbol!r}") from None

    @classmethod
    def from_csv(cls, path: Path | str) -> AssetClassifications:
        """
        Load classifications from a CSV file.

        Expected columns: symbol, asset_class. The asset class may be given
        as a member name (US_BONDS) or label (US Bonds).

        Example file:
            symbol,asset_class
            VTSAX,US_TOTAL
            VBTLX,US Bonds
        """
        df = pd.read_csv(path, dtype=str, skipinitialspace=True, comment="#")

        missing = {"symbol", "asset_class"} - set(df.columns)
        if missing:
            raise ClassificationError(
                f"{path} is missing column(s): {', '.join(sorted(missing))}"
            )

        df = df.dropna(subset=["symbol", "asset_class"])
        by_symbol = {
            row.symbol.strip(): AssetClass.parse(row.asset_class)
            for row in df.itertuples(index=False)
        }
        logger.debug("classifications_loaded", path=str(path), symbols=len(by_symbol))
        return cls(by_symbol)
