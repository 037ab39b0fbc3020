"""Pyth Network price oracle."""
import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..fixed_point import WAD, format_wad

logger = logging.getLogger(__name__)


class PythOracle:
    """Read one collateral price from Pyth Hermes, scaled to a WAD."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        # Hermes reports ids without the 0x prefix.
        self.feed_id = config.feed_id.lower().removeprefix("0x")

    @staticmethod
    def _to_wad(price_raw: int, expo: int) -> int:
        # Pyth prices are price_raw * 10**expo; keep it integral.
        if expo >= 0:
            return price_raw * 10**expo * WAD
        return price_raw * WAD // 10**(-expo)

    async def read(self) -> int:
        """Fetch the current price.

        Raises:
            RuntimeError: on HTTP errors, a missing feed, or a non-positive price.
        """
        url = f"{self.hermes_url}?ids[]={self.feed_id}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    logger.error(
                        "Error fetching price from Pyth: HTTP %s", response.status
                    )
                    raise RuntimeError(f"Pyth returned HTTP {response.status}")

                data = await response.json()

        for item in data.get("parsed", []):
            if item.get("id") != self.feed_id:
                continue
            price_data = item.get("price", {})
            price = self._to_wad(
                int(price_data.get("price", 0)), int(price_data.get("expo", 0))
            )
            if price <= 0:
                raise RuntimeError(f"Pyth feed {self.feed_id} reported price {price}")
            logger.info("Pyth price %s: %s", self.feed_id, format_wad(price, 4))
            return price

        raise RuntimeError(f"Pyth response has no entry for feed {self.feed_id}")
