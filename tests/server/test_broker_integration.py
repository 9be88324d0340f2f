"""
Integration tests: a real embedded amqtt broker on localhost, exercised with
a paho-mqtt client and with our own aiomqtt-backed client.
Deselected by default; run with `pytest -m integration`.
"""
import asyncio
import logging

import paho.mqtt.client as mqtt
import pytest

from mqtt_facade.client.config import ConnectionConfig
from mqtt_facade.client.connection import MqttClient
from mqtt_facade.server.broker import EmbeddedBroker
from mqtt_facade.server.config import AdmissionConfig, ServerConfig

pytestmark = pytest.mark.integration

TEST_PORT = 18830


@pytest.mark.asyncio
async def test_broker_admits_and_reports_paho_client():
    loop = asyncio.get_running_loop()
    connected_events = []
    broker = EmbeddedBroker(ServerConfig(
        host="127.0.0.1",
        admission=AdmissionConfig(client_ids=["paho-test"], port=TEST_PORT),
        on_client_connected=connected_events.append,
    ))
    await broker.start()

    client_connected = asyncio.Event()

    def on_connect(client, userdata, flags, rc, properties=None):
        if rc == 0:
            loop.call_soon_threadsafe(client_connected.set)
            logging.info("Test MQTT client connected successfully.")
        else:
            logging.error(f"Test MQTT client failed to connect with result code {rc}.")

    test_client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id="paho-test")
    test_client.on_connect = on_connect
    test_client.connect_async("127.0.0.1", TEST_PORT)
    test_client.loop_start()

    try:
        await asyncio.wait_for(client_connected.wait(), timeout=2.0)
        await asyncio.sleep(0.1)
        assert [e.client_id for e in connected_events] == ["paho-test"]
    except asyncio.TimeoutError:
        pytest.fail("Test MQTT client failed to connect to the embedded broker.")
    finally:
        test_client.disconnect()
        test_client.loop_stop()
        await broker.stop()


@pytest.mark.asyncio
async def test_publish_round_trip_through_embedded_broker():
    received = asyncio.Queue()
    server_messages = []
    broker = EmbeddedBroker(ServerConfig(
        host="127.0.0.1",
        port=TEST_PORT,
        on_message_received=server_messages.append,
    ))
    await broker.start()

    client = MqttClient(ConnectionConfig(
        server_address="127.0.0.1",
        port=TEST_PORT,
        message_received_callback=received.put_nowait,
    ))
    try:
        await client.start()
        await client.subscribe("/sensor/#")
        await client.publish("/sensor/1", "25.3", 2)

        message = await asyncio.wait_for(received.get(), timeout=2.0)
        assert message.topic == "/sensor/1"
        assert message.payload_utf8 == "25.3"
        assert server_messages[0].message.startswith(f"Client [{client.client_id}] >> Topic: [/sensor/1]")
    finally:
        await client.stop()
        await broker.stop()


async def paho_connects(client_id, username=None, password=None, timeout=1.0):
    """True when the broker answers the CONNECT with a successful CONNACK in time."""
    loop = asyncio.get_running_loop()
    accepted = asyncio.Event()

    def on_connect(client, userdata, flags, rc, properties=None):
        if rc == 0:
            loop.call_soon_threadsafe(accepted.set)

    paho = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
    paho.on_connect = on_connect
    if username is not None:
        paho.username_pw_set(username, password)
    paho.connect_async("127.0.0.1", TEST_PORT)
    paho.loop_start()
    try:
        await asyncio.wait_for(accepted.wait(), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        return False
    finally:
        paho.disconnect()
        paho.loop_stop()


@pytest.mark.asyncio
async def test_broker_refuses_unknown_client_and_bad_credentials():
    broker = EmbeddedBroker(ServerConfig(
        host="127.0.0.1",
        admission=AdmissionConfig(client_ids=["known"], usernames=["u"], passwords=["p"], port=TEST_PORT),
    ))
    await broker.start()
    try:
        assert await paho_connects("known", "u", "p") is True
        assert await paho_connects("known", "u", "wrong") is False
        assert await paho_connects("stranger", "u", "p") is False
    finally:
        await broker.stop()
