"""Unit tests for the tracing decorators and log redaction helpers."""

import pytest
from pydantic import BaseModel

from jungle_coach.core.observability import (
    _mask_scalar,
    _redact_obj,
    _safe_serialize_kv,
    _serialize_value,
    trace_adapter,
    trace_critical,
    trace_wrapper,
)


class _Payload(BaseModel):
    match_id: str
    deaths: int = 0


class TestRedaction:
    def test_mask_short_and_long_values(self) -> None:
        assert _mask_scalar(None) is None
        assert _mask_scalar("abc") == "***"
        assert _mask_scalar("RGAPI-1234567890") == "RGAP…890"

    def test_redact_nested_sensitive_keys(self) -> None:
        redacted = _redact_obj(
            {"riot_api_key": "RGAPI-1234567890", "nested": [{"token": "short"}], "match_id": "EUN1_1"}
        )

        assert redacted["riot_api_key"] == "RGAP…890"
        assert redacted["nested"] == [{"token": "***"}]
        assert redacted["match_id"] == "EUN1_1"

    def test_safe_serialize_masks_by_key_name(self) -> None:
        assert _safe_serialize_kv("webhook_secret", "hook-secret-value", 500) == "hook…lue"
        assert _safe_serialize_kv("count", 10, 500) == 10

    def test_serialize_value_handles_models_and_truncation(self) -> None:
        assert _serialize_value(_Payload(match_id="EUN1_1")) == {"match_id": "EUN1_1"}
        long_value = _serialize_value("x" * 50, max_length=10)
        assert long_value.endswith("...")
        assert _serialize_value(object(), max_length=1000).startswith("<object object")


class TestTraceWrapper:
    def test_sync_function_returns_value(self) -> None:
        @trace_wrapper(capture_result=True)
        def add(a: int, b: int) -> int:
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"

    def test_sync_function_reraises(self) -> None:
        @trace_wrapper()
        def boom() -> None:
            raise ValueError("bad payload")

        with pytest.raises(ValueError, match="bad payload"):
            boom()

    @pytest.mark.asyncio
    async def test_async_function_returns_value(self) -> None:
        @trace_critical
        async def fetch(count: int, api_key: str = "RGAPI-1234567890") -> list[int]:
            return list(range(count))

        assert await fetch(3) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_async_method_reraises(self) -> None:
        class Client:
            @trace_adapter
            async def get_match(self, match_id: str) -> dict:
                raise ConnectionError(f"unreachable: {match_id}")

        with pytest.raises(ConnectionError, match="EUN1_1"):
            await Client().get_match("EUN1_1")
