import pytest

from ethereal.rpc import (
    Block,
    Client,
    RpcError,
    SyncProgress,
    Transaction,
    describe_sync,
    parse_block_spec,
)

ADDRESS = "0x" + "11" * 20
OTHER = "0x" + "22" * 20
HASH = "0x" + "ab" * 32


def ok(result):
    return {"result": result}


def err(message, code=-32000):
    return {"error": {"code": code, "message": message}}


class FakeNode:
    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def __call__(self, payload):
        self.requests.append(payload)
        body = dict(self.responses[payload["method"]])
        body.update({"jsonrpc": "2.0", "id": payload["id"]})
        return body


def make_client(responses):
    node = FakeNode(responses)
    return Client(transport=node), node


def block_json(number, timestamp, gas_used, gas_limit, txs=()):
    return {
        "number": hex(number),
        "hash": HASH,
        "timestamp": hex(timestamp),
        "gasUsed": hex(gas_used),
        "gasLimit": hex(gas_limit),
        "miner": OTHER,
        "baseFeePerGas": hex(7),
        "transactions": list(txs),
    }


def test_call_returns_result_and_sends_params():
    client, node = make_client({"web3_clientVersion": ok("node/v1")})
    assert client.call("web3_clientVersion") == "node/v1"
    assert node.requests[0]["method"] == "web3_clientVersion"
    assert node.requests[0]["params"] == []


def test_call_ids_increase():
    client, node = make_client({"eth_chainId": ok(hex(5))})
    client.call("eth_chainId")
    client.call("eth_chainId")
    assert node.requests[1]["id"] > node.requests[0]["id"]


def test_call_error_raises():
    client, _ = make_client({"eth_chainId": err("boom", code=-32601)})
    with pytest.raises(RpcError, match="boom") as info:
        client.call("eth_chainId")
    assert info.value.code == -32601


def test_missing_result_raises():
    client, _ = make_client({"eth_chainId": {}})
    with pytest.raises(RpcError):
        client.call("eth_chainId")


def test_block_by_number_latest():
    tx = {"hash": HASH, "from": ADDRESS, "to": OTHER, "value": hex(3), "gas": hex(21000), "gasPrice": hex(99)}
    client, node = make_client({"eth_getBlockByNumber": ok(block_json(1200, 1650000000, 500, 1000, [tx]))})
    block = client.block_by_number(None)
    assert node.requests[0]["params"] == ["latest", True]
    assert block.number == 1200
    assert block.timestamp == 1650000000
    assert block.gas_used == 500
    assert block.gas_limit == 1000
    assert block.base_fee == 7
    assert block.transactions[0].gas_price == 99
    assert block.transactions[0].sender == ADDRESS


def test_block_by_number_encodes_number():
    client, node = make_client({"eth_getBlockByNumber": ok(block_json(77, 1, 0, 1))})
    client.block_by_number(77)
    assert node.requests[0]["params"][0] == hex(77)


def test_block_not_found():
    client, _ = make_client({"eth_getBlockByNumber": ok(None)})
    with pytest.raises(RpcError):
        client.block_by_number(5)


def test_block_by_hash():
    client, node = make_client({"eth_getBlockByHash": ok(block_json(42, 10, 0, 1))})
    block = client.block_by_hash(HASH)
    assert node.requests[0]["params"] == [HASH, True]
    assert block.number == 42


def test_transaction_hash_only():
    tx = Transaction.from_json(HASH)
    assert tx.hash == HASH
    assert tx.gas_price == 0


def test_block_without_base_fee():
    data = block_json(3, 4, 5, 6)
    del data["baseFeePerGas"]
    assert Block.from_json(data).base_fee is None


def test_balance_at_latest_and_at_block():
    client, node = make_client({"eth_getBalance": ok(hex(123456789))})
    assert client.balance_at(ADDRESS) == 123456789
    client.balance_at(ADDRESS, 100)
    assert node.requests[0]["params"] == [ADDRESS, "latest"]
    assert node.requests[1]["params"] == [ADDRESS, hex(100)]


def test_balance_missing_trie_node():
    client, _ = make_client({"eth_getBalance": err("missing trie node 1234")})
    with pytest.raises(RpcError, match="full synced node"):
        client.balance_at(ADDRESS, 1)


def test_balance_other_error_passes_through():
    client, _ = make_client({"eth_getBalance": err("something else")})
    with pytest.raises(RpcError, match="something else"):
        client.balance_at(ADDRESS)


def test_network_id():
    client, _ = make_client({"net_version": ok("1337")})
    assert client.network_id() == 1337


def test_invalid_network_id():
    client, _ = make_client({"net_version": ok("not-a-number")})
    with pytest.raises(RpcError):
        client.network_id()


def test_chain_id():
    client, _ = make_client({"eth_chainId": ok(hex(11155111))})
    assert client.chain_id() == 11155111


def test_sync_progress_synchronised():
    client, _ = make_client({"eth_syncing": ok(False)})
    assert client.sync_progress() is None


def test_sync_progress_syncing():
    data = {"currentBlock": hex(10), "highestBlock": hex(20), "pulledStates": hex(3), "knownStates": hex(4)}
    client, _ = make_client({"eth_syncing": ok(data)})
    assert client.sync_progress() == SyncProgress(10, 20, 3, 4)


def test_eth_call_round_trip():
    client, node = make_client({"eth_call": ok("0x" + "00ff" * 4)})
    assert client.eth_call(OTHER, b"\x01\x02") == bytes.fromhex("00ff" * 4)
    call_object, selector = node.requests[0]["params"]
    assert call_object == {"to": OTHER, "data": "0x0102"}
    assert selector == "latest"


def test_parse_block_spec_number():
    assert parse_block_spec("1234") == 1234


def test_parse_block_spec_empty():
    assert parse_block_spec("") is None


def test_parse_block_spec_full_hash():
    assert parse_block_spec(HASH) == HASH


def test_parse_block_spec_pads_short_hash():
    result = parse_block_spec("0xabc")
    assert len(result) == 66
    assert result.endswith("0abc")
    assert set(result[2:-4]) == {"0"}


def test_parse_block_spec_invalid():
    with pytest.raises(ValueError):
        parse_block_spec("0xnothex")


def test_describe_sync_synchronised():
    assert describe_sync(None) == "Node is synchronised"


def test_describe_sync_in_progress():
    progress = SyncProgress(current_block=10, highest_block=20, pulled_states=3, known_states=4)
    assert describe_sync(progress) == "Node is at block 10, syncing to block 20"
    verbose = describe_sync(progress, True).splitlines()
    assert verbose[1] == "Pulled states is 3, known states is 4"