from __future__ import annotations

from .allocation import Allocation
from .assets import Asset, AssetClass
from .portfolio import Portfolio

__all__ = ["Allocation", "Asset", "AssetClass", "Portfolio"]
