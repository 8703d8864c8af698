"""
Tests for the mint and deployment watchers and the resubscription loop
"""
import asyncio
import logging

import pytest
from hexbytes import HexBytes

from mint_watch.config.constants import TRANSFER_EVENT_TOPIC, ZERO_TOPIC
from mint_watch.core.exceptions import DataValidationError, StartupError, TransportError
from mint_watch.workers.deployment_watcher import DeploymentWatcher, is_contract_creation
from mint_watch.workers.mint_watcher import MintWatcher, decode_mint

from conftest import RECIPIENT, SENDER, TOKEN, ScriptedStream, topic_for, word


def transfer_log(from_topic=ZERO_TOPIC, to=RECIPIENT, value=10 ** 18, address=TOKEN, extra_topics=()):
    return {
        "address": address,
        "topics": [TRANSFER_EVENT_TOPIC, from_topic, topic_for(to), *extra_topics],
        "data": word(value),
        "blockNumber": 100,
        "transactionHash": "0x" + "ab" * 32,
    }


class RecordingNotifier:
    def __init__(self):
        self.mints = []
        self.deployments = []

    async def notify_mint(self, event, metadata):
        self.mints.append((event, metadata))
        return True

    async def notify_deployment(self, event, metadata):
        self.deployments.append((event, metadata))
        return True


@pytest.fixture
def recording_notifier():
    return RecordingNotifier()


# ===== Log decoding =====

def test_decode_mint_extracts_fields():
    event = decode_mint(transfer_log())

    assert event.contract_address == TOKEN
    assert event.recipient_address == RECIPIENT
    assert event.amount == 10 ** 18
    assert event.block_number == 100


def test_decode_mint_accepts_hexbytes_records():
    log = transfer_log(value=42)
    log["topics"] = [HexBytes(topic) for topic in log["topics"]]
    log["data"] = HexBytes(log["data"])
    log["transactionHash"] = HexBytes(log["transactionHash"])

    event = decode_mint(log)

    assert event.amount == 42
    assert event.transaction_hash == "0x" + "ab" * 32


def test_decode_mint_ignores_transfer_from_nonzero_address():
    assert decode_mint(transfer_log(from_topic=topic_for(SENDER))) is None


def test_decode_mint_ignores_erc721_transfers():
    log = transfer_log(extra_topics=(word(7),))
    log["data"] = "0x"
    assert decode_mint(log) is None


def test_decode_mint_ignores_other_events():
    log = transfer_log()
    log["topics"][0] = "0x" + "11" * 32
    assert decode_mint(log) is None


def test_decode_mint_rejects_short_data():
    log = transfer_log()
    log["data"] = "0x1234"
    with pytest.raises(DataValidationError):
        decode_mint(log)


# ===== Mint watcher =====

@pytest.mark.asyncio
async def test_mint_in_block_yields_one_notification(chain, resolver, recording_notifier):
    chain.logs[100] = [transfer_log()]
    watcher = MintWatcher(chain=chain, resolver=resolver, notifier=recording_notifier)

    await watcher.handle_notification({"number": hex(100)})
    await watcher.drain()

    assert len(recording_notifier.mints) == 1
    event, metadata = recording_notifier.mints[0]
    assert event.contract_address == TOKEN
    assert event.recipient_address == RECIPIENT
    assert event.amount == 10 ** 18
    assert metadata.symbol == "DAI"
    assert ("get_logs", 100) in chain.calls


@pytest.mark.asyncio
async def test_non_mint_transfer_yields_no_notification(chain, resolver, recording_notifier):
    chain.logs[101] = [transfer_log(from_topic=topic_for(SENDER))]
    watcher = MintWatcher(chain=chain, resolver=resolver, notifier=recording_notifier)

    mints = await watcher.process_block(101)
    await watcher.drain()

    assert mints == 0
    assert recording_notifier.mints == []


@pytest.mark.asyncio
async def test_undecodable_log_does_not_block_other_mints(chain, resolver, recording_notifier):
    broken = transfer_log()
    broken["data"] = "0x"
    chain.logs[102] = [broken, transfer_log(value=5)]
    watcher = MintWatcher(chain=chain, resolver=resolver, notifier=recording_notifier)

    await watcher.process_block(102)
    await watcher.drain()

    assert [event.amount for event, _ in recording_notifier.mints] == [5]
    assert watcher.stats["event_errors"] == 1


@pytest.mark.asyncio
async def test_failing_mint_task_is_logged_and_dropped(chain, resolver, caplog):
    class ExplodingNotifier(RecordingNotifier):
        async def notify_mint(self, event, metadata):
            raise RuntimeError("boom")

    chain.logs[103] = [transfer_log(), transfer_log(value=2)]
    watcher = MintWatcher(chain=chain, resolver=resolver, notifier=ExplodingNotifier())

    with caplog.at_level(logging.ERROR):
        await watcher.process_block(103)
        await watcher.drain()

    assert watcher.stats["event_errors"] == 2
    assert "Error processing mint watcher event" in caplog.text


# ===== Deployment watcher =====

CREATION_HASH = "0x" + "cd" * 32


def creation_tx(**overrides):
    tx = {"hash": CREATION_HASH, "from": SENDER, "to": None, "input": "0x6080604052"}
    tx.update(overrides)
    return tx


def test_is_contract_creation():
    assert is_contract_creation(creation_tx()) is True
    assert is_contract_creation(creation_tx(input=HexBytes("0x6080"))) is True
    assert is_contract_creation(creation_tx(input="0x")) is False
    assert is_contract_creation(creation_tx(to=RECIPIENT)) is False


@pytest.fixture
def deployment_watcher(chain, classifier, resolver, recording_notifier):
    return DeploymentWatcher(
        chain=chain,
        classifier=classifier,
        resolver=resolver,
        notifier=recording_notifier
    )


@pytest.mark.asyncio
async def test_conformant_deployment_is_reported(chain, deployment_watcher, recording_notifier):
    chain.transactions[CREATION_HASH] = creation_tx()
    chain.receipts[CREATION_HASH] = {"contractAddress": TOKEN, "blockNumber": 200}

    await deployment_watcher.handle_notification(CREATION_HASH)

    assert len(recording_notifier.deployments) == 1
    event, metadata = recording_notifier.deployments[0]
    assert event.contract_address == TOKEN
    assert event.transaction_hash == CREATION_HASH
    assert event.deployer_address == SENDER
    assert event.block_number == 200
    assert metadata.name == "Dai Stablecoin"


@pytest.mark.asyncio
async def test_transaction_with_recipient_is_never_probed(chain, deployment_watcher, recording_notifier):
    chain.transactions[CREATION_HASH] = creation_tx(to=TOKEN, input="0xa9059cbb" + "00" * 64)

    await deployment_watcher.handle_notification(CREATION_HASH)

    assert chain.count("wait_for_receipt") == 0
    assert chain.count("call") == 0
    assert recording_notifier.deployments == []


@pytest.mark.asyncio
async def test_non_erc20_deployment_is_not_reported(chain, deployment_watcher, recording_notifier):
    other = "0x3333333333333333333333333333333333333333"
    chain.add_token(other, totalSupply=None)
    chain.transactions[CREATION_HASH] = creation_tx()
    chain.receipts[CREATION_HASH] = {"contractAddress": other, "blockNumber": 201}

    await deployment_watcher.handle_notification(CREATION_HASH)

    assert recording_notifier.deployments == []


@pytest.mark.asyncio
async def test_receipt_without_contract_address_is_ignored(chain, deployment_watcher, recording_notifier):
    chain.transactions[CREATION_HASH] = creation_tx()
    chain.receipts[CREATION_HASH] = {"contractAddress": None, "blockNumber": 202}

    await deployment_watcher.handle_notification(CREATION_HASH)

    assert chain.count("call") == 0
    assert recording_notifier.deployments == []


@pytest.mark.asyncio
async def test_dropped_pending_transaction_is_ignored(chain, deployment_watcher, recording_notifier):
    await deployment_watcher.handle_notification("0x" + "ee" * 32)

    assert chain.count("wait_for_receipt") == 0
    assert recording_notifier.deployments == []


@pytest.mark.asyncio
async def test_full_transaction_notifications_skip_lookup(chain, deployment_watcher, recording_notifier):
    chain.receipts[CREATION_HASH] = {"contractAddress": TOKEN, "blockNumber": 203}

    await deployment_watcher.handle_notification(creation_tx())

    assert chain.count("get_transaction") == 0
    assert len(recording_notifier.deployments) == 1


# ===== Subscription lifecycle =====

async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_transport_error_triggers_resubscription(chain, resolver, recording_notifier, caplog):
    chain.logs[7] = [transfer_log()]
    streams = [
        ScriptedStream([TransportError("socket hang up")]),
        ScriptedStream([{"number": hex(7)}]),
    ]
    created = []

    def factory():
        stream = streams.pop(0)
        created.append(stream)
        return stream

    watcher = MintWatcher(
        chain=chain,
        resolver=resolver,
        notifier=recording_notifier,
        reconnect_delay=0.05,
        stream_factory=factory
    )

    with caplog.at_level(logging.ERROR):
        await watcher.start()
        await wait_until(lambda: len(recording_notifier.mints) == 1)

    assert watcher.is_running
    assert len(created) == 2
    assert created[0].closed
    assert watcher.stats["transport_errors"] == 1
    assert watcher.stats["resubscriptions"] == 1
    assert "socket hang up" in caplog.text

    await watcher.stop()
    assert created[1].closed


@pytest.mark.asyncio
async def test_failed_resubscription_is_retried(chain, resolver, recording_notifier):
    streams = [
        ScriptedStream([TransportError("reset")]),
        ScriptedStream([], fail_connect=True),
        ScriptedStream([]),
    ]
    watcher = MintWatcher(
        chain=chain,
        resolver=resolver,
        notifier=recording_notifier,
        reconnect_delay=0.01,
        stream_factory=lambda: streams.pop(0)
    )

    await watcher.start()
    await wait_until(lambda: watcher.stats["resubscriptions"] == 1)

    assert watcher.stats["transport_errors"] == 2
    await watcher.stop()


@pytest.mark.asyncio
async def test_initial_subscription_failure_is_fatal(chain, resolver, recording_notifier):
    watcher = MintWatcher(
        chain=chain,
        resolver=resolver,
        notifier=recording_notifier,
        stream_factory=lambda: ScriptedStream([], fail_connect=True)
    )

    with pytest.raises(StartupError):
        await watcher.start()
    assert not watcher.is_running


@pytest.mark.asyncio
async def test_unexpected_listener_error_resubscribes(chain, resolver, recording_notifier, caplog):
    chain.logs[8] = [transfer_log()]
    streams = [
        ScriptedStream([RuntimeError("unreadable frame")]),
        ScriptedStream([{"number": hex(8)}]),
    ]
    watcher = MintWatcher(
        chain=chain,
        resolver=resolver,
        notifier=recording_notifier,
        reconnect_delay=0.01,
        stream_factory=lambda: streams.pop(0)
    )

    with caplog.at_level(logging.ERROR):
        await watcher.start()
        await wait_until(lambda: len(recording_notifier.mints) == 1)

    assert watcher.is_running
    assert watcher.stats["listener_errors"] == 1
    assert watcher.stats["resubscriptions"] == 1
    assert "Unexpected error in mint watcher listener" in caplog.text
    await watcher.stop()


@pytest.mark.asyncio
async def test_non_object_frames_are_skipped_on_live_socket(chain, resolver, recording_notifier, ws_node):
    chain.logs[100] = [transfer_log()]
    ws_node.frames = [[1, 2, 3], 42, ws_node.notification({"number": hex(100)})]
    ws_node.hold_open = True
    watcher = MintWatcher(
        chain=chain,
        resolver=resolver,
        notifier=recording_notifier,
        ws_url=ws_node.url,
        reconnect_delay=0.01
    )

    await watcher.start()
    try:
        await wait_until(lambda: len(recording_notifier.mints) == 1)
    finally:
        await watcher.stop()

    assert watcher.stats["notifications"] == 1
    assert watcher.stats["listener_errors"] == 0
    assert watcher.stats["resubscriptions"] == 0
