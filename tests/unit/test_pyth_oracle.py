"""Unit tests for the Pyth oracle — response parsing and error handling."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from saviour.config import PythConfig
from saviour.fixed_point import WAD
from saviour.oracles.pyth import PythOracle


@pytest.fixture()
def oracle(sample_pyth_config: PythConfig) -> PythOracle:
    return PythOracle(sample_pyth_config)


def _mock_session(status: int, data: dict | None = None) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=data or {})
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestPythOracleRead:
    def test_feed_id_normalized(self, oracle: PythOracle) -> None:
        assert oracle.feed_id == "aaa111"

    @pytest.mark.asyncio
    async def test_parses_price_to_wad(self, oracle: PythOracle) -> None:
        session = _mock_session(
            200,
            {"parsed": [
                {"id": "other", "price": {"price": "1", "expo": "0"}},
                {"id": "aaa111", "price": {"price": "180012345678", "expo": "-8"}},
            ]},
        )
        with patch("saviour.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("saviour.oracles.pyth.aiohttp.TCPConnector"):
                price = await oracle.read()

        assert price == 180012345678 * 10**10
        url = session.get.call_args[0][0]
        assert url.endswith("?ids[]=aaa111")

    @pytest.mark.asyncio
    async def test_positive_exponent(self, oracle: PythOracle) -> None:
        session = _mock_session(
            200, {"parsed": [{"id": "aaa111", "price": {"price": "3", "expo": "2"}}]}
        )
        with patch("saviour.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("saviour.oracles.pyth.aiohttp.TCPConnector"):
                assert await oracle.read() == 300 * WAD

    @pytest.mark.asyncio
    async def test_http_error_raises(self, oracle: PythOracle) -> None:
        session = _mock_session(500)
        with patch("saviour.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("saviour.oracles.pyth.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="HTTP 500"):
                    await oracle.read()

    @pytest.mark.asyncio
    async def test_missing_feed_raises(self, oracle: PythOracle) -> None:
        session = _mock_session(200, {"parsed": []})
        with patch("saviour.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("saviour.oracles.pyth.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="no entry"):
                    await oracle.read()

    @pytest.mark.asyncio
    async def test_non_positive_price_raises(self, oracle: PythOracle) -> None:
        session = _mock_session(
            200, {"parsed": [{"id": "aaa111", "price": {"price": "0", "expo": "-8"}}]}
        )
        with patch("saviour.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("saviour.oracles.pyth.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="reported price"):
                    await oracle.read()
