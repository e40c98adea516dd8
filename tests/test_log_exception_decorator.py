"""Tests for the log_exception decorator."""

import asyncio

import pytest

from factorio_notifier.logger import log_exception


class TestBasicExceptionLogging:
    """Test basic exception logging functionality."""

    def test_sync_function_with_prefix(self, caplog):
        """Test sync function logs exception with prefix and returns None."""

        @log_exception("SyncOperation")
        def sync_func_with_error():
            raise ValueError("Test error from sync function")

        assert sync_func_with_error() is None
        assert "SyncOperation: ValueError: Test error from sync function" in caplog.text
        assert "ERROR" in caplog.text

    @pytest.mark.asyncio
    async def test_async_function_with_prefix(self, caplog):
        """Test async function logs exception with prefix and returns None."""

        @log_exception("AsyncOperation")
        async def async_func_with_error():
            await asyncio.sleep(0.01)
            raise ValueError("Test error from async function")

        assert await async_func_with_error() is None
        assert (
            "AsyncOperation: ValueError: Test error from async function" in caplog.text
        )

    @pytest.mark.asyncio
    async def test_default_return(self, caplog):
        """Test the configured default is returned on failure."""

        @log_exception(default_return=False)
        async def deliver():
            raise ConnectionError("down")

        assert await deliver() is False
        assert "ConnectionError: down" in caplog.text

    @pytest.mark.asyncio
    async def test_successful_execution_no_log(self, caplog):
        """Test successful execution does not log error."""

        @log_exception("SuccessfulOp")
        async def async_func_success():
            return "Success!"

        assert await async_func_success() == "Success!"
        assert "ERROR" not in caplog.text


class TestParameterBinding:
    """Test parameter name binding and display."""

    def test_positional_args_with_names(self, caplog):
        """Test positional arguments are bound to parameter names."""

        @log_exception("Calculator")
        def add_numbers(a: int, b: int) -> int:
            raise ValueError("Test error")

        add_numbers(5, 3)

        assert "a=5" in caplog.text
        assert "b=3" in caplog.text

    @pytest.mark.asyncio
    async def test_default_values_shown(self, caplog):
        """Test default parameter values are shown in logs."""

        @log_exception()
        async def send(message: str, retries: int = 0):
            raise RuntimeError("Test error")

        await send("hello")

        assert "message='hello'" in caplog.text
        assert "retries=0" in caplog.text

    @pytest.mark.asyncio
    async def test_self_is_hidden(self, caplog):
        """Test instance methods don't dump the instance."""

        class Worker:
            def __repr__(self):
                return "<Worker instance>"

            @log_exception("Worker")
            async def deliver(self, message: str):
                raise KeyError("Test error")

        assert await Worker().deliver("hi") is None
        assert "message='hi'" in caplog.text
        assert "<Worker instance>" not in caplog.text


class TestPrefixFormatting:
    """Test prefix formatting with parameter substitution."""

    def test_parameter_in_prefix(self, caplog):
        """Test prefix with parameter substitution and conversion."""

        @log_exception("Delivering {message!r}")
        def deliver(message: str):
            raise ValueError("Test error")

        deliver("Alice joined")

        assert "Delivering 'Alice joined': ValueError: Test error" in caplog.text

    def test_missing_parameter_in_prefix(self, caplog):
        """Test an unknown placeholder falls back to the raw prefix."""

        @log_exception("Player[{player_name}]")
        def join(name: str):
            raise ValueError("Test error")

        join("Steve")

        assert "Failed to format prefix" in caplog.text
        assert "Player[{player_name}]: ValueError: Test error" in caplog.text
