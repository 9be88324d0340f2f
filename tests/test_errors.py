from unittest.mock import MagicMock

import pytest

from mqtt_facade.errors import EngineError, ErrorRouter, OperationResult


def test_router_without_handler_raises():
    router = ErrorRouter()

    with pytest.raises(EngineError, match="boom"):
        router.handle(EngineError("boom"))


def test_router_with_handler_routes_and_returns_failure():
    handler = MagicMock()
    router = ErrorRouter(handler)
    error = EngineError("boom")

    result = router.handle(error)

    handler.assert_called_once_with(error)
    assert result.ok is False
    assert result.error is error
    with pytest.raises(EngineError):
        result.unwrap()


def test_report_without_handler_only_logs(caplog):
    ErrorRouter().report(EngineError("background failure"))

    assert "background failure" in caplog.text


def test_success_result():
    result = OperationResult.success()

    assert result.ok is True
    result.unwrap()
