"""
Shared fixtures: in-memory chain, scripted subscription streams, a local
websocket node and aiohttp servers standing in for CoinGecko, Etherscan and
Discord
"""
import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest
import websockets
from aiohttp import web
from aiohttp.test_utils import TestServer

from mint_watch.analytics.contract_classifier import ContractClassifier
from mint_watch.analytics.metadata_resolver import MetadataResolver
from mint_watch.connectors.metadata.coingecko import CoinGeckoConnector
from mint_watch.connectors.metadata.etherscan import EtherscanConnector
from mint_watch.connectors.notify.discord import DiscordWebhookConnector
from mint_watch.core.exceptions import TransportError
from mint_watch.notifications.notifier import Notifier
from mint_watch.storage.cache_manager import MetadataCache


TOKEN = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
RECIPIENT = "0x1111111111111111111111111111111111111111"
SENDER = "0x2222222222222222222222222222222222222222"


class ContractReverted(Exception):
    pass


class FakeChain:
    """Implements the EthereumConnector surface over dictionaries"""

    def __init__(self):
        self.code: Dict[str, bytes] = {}
        self.contracts: Dict[str, Dict[str, Any]] = {}
        self.logs: Dict[int, List[Dict[str, Any]]] = {}
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.is_connected = True

    def add_token(self, address: str, name="Dai Stablecoin", symbol="DAI",
                  decimals=18, total_supply=10 ** 24, **overrides):
        values = {
            "name": name,
            "symbol": symbol,
            "decimals": decimals,
            "totalSupply": total_supply,
        }
        values.update(overrides)
        self.contracts[address.lower()] = values
        self.code[address.lower()] = b"\x60\x80"

    async def get_code(self, address: str) -> bytes:
        self.calls.append(("get_code", address))
        return self.code.get(address.lower(), b"")

    async def call_erc20(self, address: str, function_name: str) -> Any:
        self.calls.append(("call", address, function_name))
        await asyncio.sleep(0)
        contract = self.contracts.get(address.lower())
        if contract is None:
            raise ContractReverted(f"no contract at {address}")
        value = contract.get(function_name)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise ContractReverted(f"{function_name}() reverted")
        return value

    async def get_transfer_logs(self, block_number: int) -> List[Dict[str, Any]]:
        self.calls.append(("get_logs", block_number))
        return self.logs.get(block_number, [])

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        self.calls.append(("get_transaction", tx_hash))
        return self.transactions.get(tx_hash)

    async def wait_for_receipt(self, tx_hash: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        self.calls.append(("wait_for_receipt", tx_hash))
        return self.receipts[tx_hash]

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


class ScriptedStream:
    """Subscription stream that replays a script of results and errors"""

    def __init__(self, script: List[Any], fail_connect: bool = False):
        self.script = list(script)
        self.fail_connect = fail_connect
        self.connected = False
        self.closed = False

    async def connect(self) -> str:
        if self.fail_connect:
            raise TransportError("connection refused")
        self.connected = True
        return "0xsub"

    async def notifications(self):
        for item in self.script:
            if isinstance(item, Exception):
                raise item
            yield item
        # Idle until the watcher is stopped
        await asyncio.Event().wait()

    async def close(self) -> None:
        self.closed = True


def topic_for(address: str) -> str:
    return "0x" + address[2:].lower().rjust(64, "0")


def word(value: int) -> str:
    return "0x" + format(value, "064x")


@pytest.fixture
def chain():
    fake = FakeChain()
    fake.add_token(TOKEN)
    return fake


@pytest.fixture
def cache():
    return MetadataCache()


@pytest.fixture
def classifier(chain):
    return ContractClassifier(chain)


class FakeAPI:
    """Records requests and serves scripted responses"""

    def __init__(self):
        self.requests: List[web.Request] = []
        self.bodies: List[Any] = []
        self.status = 200
        self.payload: Any = {}
        self.delay = 0.0

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(request)
        if request.method == "POST":
            self.bodies.append(await request.json())
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.status == 204:
            return web.Response(status=204)
        return web.json_response(self.payload, status=self.status)


async def _serve(api: FakeAPI, path: str):
    app = web.Application()
    app.router.add_route("*", path, api.handle)
    server = TestServer(app)
    await server.start_server()
    return server


@pytest.fixture
async def coingecko_api():
    api = FakeAPI()
    api.payload = {
        "image": {"small": "https://assets.example/dai-small.png"},
        "market_data": {"total_volume": {"usd": 123456789.5}},
    }
    server = await _serve(api, "/coins/ethereum/contract/{address}")
    api.base_url = str(server.make_url(""))
    yield api
    await server.close()


@pytest.fixture
async def etherscan_api():
    api = FakeAPI()
    api.payload = {"status": "1", "result": [{"logo": "https://etherscan.example/dai.png"}]}
    server = await _serve(api, "/api")
    api.base_url = str(server.make_url(""))
    yield api
    await server.close()


@pytest.fixture
async def discord_api():
    api = FakeAPI()
    api.status = 204
    server = await _serve(api, "/webhook")
    api.url = str(server.make_url("/webhook"))
    yield api
    await server.close()


@pytest.fixture
async def coingecko(coingecko_api):
    connector = CoinGeckoConnector(base_url=coingecko_api.base_url, timeout_seconds=0.5)
    yield connector
    await connector.disconnect()


@pytest.fixture
async def etherscan(etherscan_api):
    connector = EtherscanConnector(
        api_key="test-key", base_url=etherscan_api.base_url, timeout_seconds=0.5
    )
    yield connector
    await connector.disconnect()


@pytest.fixture
async def discord(discord_api):
    connector = DiscordWebhookConnector(webhook_url=discord_api.url)
    yield connector
    await connector.disconnect()


@pytest.fixture
def resolver(chain, cache, coingecko):
    return MetadataResolver(chain=chain, cache=cache, primary=coingecko)


@pytest.fixture
def notifier(discord, classifier):
    return Notifier(sink=discord, classifier=classifier, history_size=10)


class FakeNode:
    """Websocket endpoint that answers eth_subscribe and pushes scripted frames"""

    def __init__(self):
        self.subscription_id = "0xfeed"
        self.error: Optional[Dict[str, Any]] = None
        self.frames: List[Any] = []
        self.hold_open = False
        self.requests: List[Dict[str, Any]] = []

    async def handle(self, websocket, *args):
        request = json.loads(await websocket.recv())
        self.requests.append(request)
        reply: Dict[str, Any] = {"jsonrpc": "2.0", "id": request["id"]}
        if self.error is not None:
            reply["error"] = self.error
        else:
            reply["result"] = self.subscription_id
        await websocket.send(json.dumps(reply))

        for frame in self.frames:
            await websocket.send(frame if isinstance(frame, str) else json.dumps(frame))
        if self.hold_open:
            await websocket.wait_closed()

    def notification(self, result: Any, subscription: Optional[str] = None) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "method": "eth_subscription",
            "params": {"subscription": subscription or self.subscription_id, "result": result},
        }


@pytest.fixture
async def ws_node():
    node = FakeNode()
    server = await websockets.serve(node.handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    node.url = f"ws://127.0.0.1:{port}"
    yield node
    server.close()
    await server.wait_closed()
