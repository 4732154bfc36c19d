import asyncio

import httpx
import pytest

from evm_risk.errors import GatewayError, JsonRpcError, ProviderUnavailable
from evm_risk.sources.gateway import TRANSFER_TOPIC, ChainGateway, parse_log
from evm_risk.utils.address import pad_topic

from conftest import SEPOLIA, WALLET, FakeNode


def _logs_filters(node):
    return [params[0] for method, params in node.calls if method == "eth_getLogs"]


def test_window_is_lookback_from_head(node, providers):
    activity = asyncio.run(ChainGateway(providers).fetch_wallet_activity(WALLET, SEPOLIA))
    assert activity.block_range.from_block == 10000
    assert activity.block_range.to_block == 20000
    outbound, inbound = _logs_filters(node)
    assert outbound == {"fromBlock": hex(10000), "toBlock": hex(20000), "address": WALLET}
    assert inbound["topics"] == [TRANSFER_TOPIC, None, pad_topic(WALLET)]


def test_window_clamped_at_genesis():
    node = FakeNode(head=500)
    activity = asyncio.run(ChainGateway({SEPOLIA: node.client()}).fetch_wallet_activity(WALLET, SEPOLIA))
    assert activity.block_range.from_block == 0
    assert _logs_filters(node)[0]["fromBlock"] == "0x0"


def test_unknown_chain():
    gateway = ChainGateway({})
    assert not gateway.connected
    with pytest.raises(ProviderUnavailable):
        asyncio.run(gateway.fetch_wallet_activity(WALLET, 1))


def test_http_failure_keeps_cause(node, providers):
    node.fail_methods.add("eth_blockNumber")
    with pytest.raises(GatewayError) as exc:
        asyncio.run(ChainGateway(providers).fetch_wallet_activity(WALLET, SEPOLIA))
    assert isinstance(exc.value.__cause__, httpx.HTTPStatusError)
    assert exc.value.method == "eth_blockNumber"
    assert "secret" not in str(exc.value)


def test_rpc_error_keeps_cause(node, providers):
    tx = node.add_tx()
    node.failing.add(tx)
    with pytest.raises(GatewayError) as exc:
        asyncio.run(ChainGateway(providers).get_transaction(SEPOLIA, tx))
    assert isinstance(exc.value.__cause__, JsonRpcError)
    assert exc.value.__cause__.code == -32000


def test_parse_erc20_transfer():
    entry = {
        "address": "0x" + "CC" * 20,
        "topics": [TRANSFER_TOPIC, pad_topic("0x" + "01" * 20), pad_topic(WALLET)],
        "data": "0x" + f"{1000:064x}",
        "blockNumber": "0x10",
        "transactionHash": "0x" + "aa" * 32,
    }
    log = parse_log(entry)
    assert log.from_address == "0x" + "cc" * 20
    assert log.to_address == WALLET
    assert log.value == 1000
    assert log.block_number == 16


def test_parse_plain_log():
    log = parse_log({"address": WALLET, "topics": ["0x" + "99" * 32], "transactionHash": "0x01"})
    assert log.to_address is None
    assert log.value == 0
    assert log.data == "0x"
