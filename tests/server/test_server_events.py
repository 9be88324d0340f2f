"""
Broker-side event translation tests.
"""
from unittest.mock import MagicMock

from mqtt_facade.events import ServerEventTranslator
from mqtt_facade.models import QualityOfService, ServerEvent


def test_client_connected_and_disconnected():
    connected, disconnected = MagicMock(), MagicMock()
    translator = ServerEventTranslator(on_client_connected=connected, on_client_disconnected=disconnected)

    translator.client_connected("c1")
    translator.client_disconnected("c1")

    connected.assert_called_once_with(ServerEvent(client_id="c1", message="Client [c1] connected"))
    disconnected.assert_called_once_with(ServerEvent(client_id="c1", message="Client [c1] disconnected"))


def test_subscribe_and_unsubscribe_summaries():
    subscribed, unsubscribed = MagicMock(), MagicMock()
    translator = ServerEventTranslator(on_subscribed=subscribed, on_unsubscribed=unsubscribed)

    translator.subscribed("c1", "/TopicName/")
    translator.unsubscribed("c1", "/TopicName/")

    [event] = subscribed.call_args.args
    assert event.topic == "/TopicName/"
    assert event.message == "Client [c1] subscribed to topic: /TopicName/"
    [event] = unsubscribed.call_args.args
    assert event.message == "Client [c1] unsubscribed from topic: /TopicName/"


def test_message_received_summary():
    received = MagicMock()
    translator = ServerEventTranslator(on_message_received=received)

    translator.message_received("c1", "/sensor/1", b"25.3", 2, True)

    [event] = received.call_args.args
    assert event.client_id == "c1"
    assert event.topic == "/sensor/1"
    assert event.payload == "25.3"
    assert event.qos is QualityOfService.EXACTLY_ONCE
    assert event.retain is True
    assert event.message == "Client [c1] >> Topic: [/sensor/1] Payload: [25.3] QoS: [EXACTLY_ONCE] Retain: [True]"


def test_events_without_callback_are_dropped():
    translator = ServerEventTranslator()

    assert translator.client_connected("c1") is None
    assert translator.client_disconnected("c1") is None
    assert translator.subscribed("c1", "t") is None
    assert translator.unsubscribed("c1", "t") is None
    assert translator.message_received("c1", "t", b"x") is None


def test_only_configured_event_types_are_delivered():
    connected = MagicMock()
    translator = ServerEventTranslator(on_client_connected=connected)

    translator.subscribed("c1", "t")
    translator.client_connected("c2")

    connected.assert_called_once()
