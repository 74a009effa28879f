"""
Top-Up Reconciler - Service Tests

Wallet resolution, failure reporting and job wiring.
"""

import asyncio
import logging

import pytest

from topup.core.config import Settings
from topup.core.exceptions import WalletNotConfigured
from topup.jobs.top_up_deployments import build_reconciler
from topup.services.deployments import DrainingDeploymentFallback
from topup.services.errors import ErrorTracker, FailureReporter, LoggingErrorTracker
from topup.services.wallets import MasterWallet, WalletRole, build_master_wallets

from fakes import RecordingTracker


class TestMasterWallet:

    def test_static_address(self):
        wallet = MasterWallet(WalletRole.MANAGED, "akash1managed")
        assert asyncio.run(wallet.get_first_address()) == "akash1managed"

    def test_loader_runs_once(self):
        calls = []

        async def loader():
            calls.append(1)
            await asyncio.sleep(0)
            return "akash1derived"

        wallet = MasterWallet(WalletRole.UAKT_TOP_UP, loader)

        async def resolve_many():
            return await asyncio.gather(*(wallet.get_first_address() for _ in range(5)))

        assert asyncio.run(resolve_many()) == ["akash1derived"] * 5
        assert asyncio.run(wallet.get_first_address()) == "akash1derived"
        assert calls == [1]

    def test_missing_address_raises(self):
        wallet = MasterWallet(WalletRole.USDC_TOP_UP, None)
        with pytest.raises(WalletNotConfigured) as exc:
            asyncio.run(wallet.get_first_address())
        assert exc.value.role == "USDC_TOP_UP"

    def test_build_from_settings(self):
        settings = Settings(
            MANAGED_WALLET_ADDRESS="m",
            UAKT_TOP_UP_WALLET_ADDRESS="u",
            USDC_TOP_UP_WALLET_ADDRESS="c",
        )
        wallets = build_master_wallets(settings)

        assert set(wallets) == set(WalletRole)
        assert asyncio.run(wallets[WalletRole.USDC_TOP_UP].get_first_address()) == "c"


class TestFailureReporter:

    def test_success_returns_true(self):
        tracker = RecordingTracker()
        reporter = FailureReporter(tracker)

        async def op():
            return None

        assert asyncio.run(reporter.exec_with_error_handler(op)) is True
        assert tracker.captured == []

    def test_failure_is_captured_not_raised(self):
        tracker = RecordingTracker()
        reporter = FailureReporter(tracker)

        async def op():
            raise RuntimeError("boom")

        assert asyncio.run(reporter.exec_with_error_handler(op, granter="a")) is False
        assert isinstance(tracker.captured[0], RuntimeError)

    def test_broken_tracker_still_logs(self, caplog):
        caplog.set_level(logging.ERROR, logger="topup")

        class BrokenTracker(ErrorTracker):
            async def capture(self, error):
                raise ConnectionError("tracker down")

        async def op():
            raise RuntimeError("boom")

        assert asyncio.run(FailureReporter(BrokenTracker()).exec_with_error_handler(op)) is False

        failed = [r for r in caplog.records if getattr(r, "event", None) == "TOP_UP_FAILED"]
        assert failed[0].fields["event_id"] is None
        assert "RuntimeError: boom" in failed[0].fields["error"]

    def test_logging_tracker_returns_event_id(self, caplog):
        caplog.set_level(logging.WARNING, logger="topup")

        event_id = asyncio.run(LoggingErrorTracker().capture(ValueError("bad")))

        captured = [r for r in caplog.records if getattr(r, "event", None) == "ERROR_CAPTURED"]
        assert captured[0].fields["event_id"] == event_id
        assert captured[0].fields["error_type"] == "ValueError"


class TestFallbacks:

    def test_draining_deployment_fallback_is_empty(self):
        assert asyncio.run(DrainingDeploymentFallback().retrieve_draining_deployments("owner")) == []


class TestJobWiring:

    def test_build_reconciler_from_settings(self):
        settings = Settings(
            API_NODE_URL="http://node.test/",
            TOP_UP_CONCURRENCY=5,
            MANAGED_WALLET_ADDRESS="m",
            UAKT_TOP_UP_WALLET_ADDRESS="u",
            USDC_TOP_UP_WALLET_ADDRESS="c",
        )
        reconciler = build_reconciler(settings)

        assert reconciler.concurrency == 5
        assert reconciler.allowance_client.base_url == "http://node.test"
        assert reconciler.managed_wallet.role == WalletRole.MANAGED
        assert [w.role for w in reconciler.custodial_wallets] == [
            WalletRole.UAKT_TOP_UP,
            WalletRole.USDC_TOP_UP,
        ]


class TestLogging:

    def test_configure_logging_installs_one_handler(self):
        from topup.core.logging import configure_logging

        logger = configure_logging("debug")
        configure_logging("debug")

        assert logger.level == logging.DEBUG
        assert len([h for h in logger.handlers if getattr(h, "_topup_handler", False)]) == 1

    def test_event_formatter_renders_fields(self):
        from topup.core.logging import EventFormatter

        record = logging.LogRecord("topup.test", logging.INFO, __file__, 1, "GRANT_SEEN", None, None)
        record.fields = {"granter": "a", "failed": 0}

        assert EventFormatter("%(message)s").format(record) == "GRANT_SEEN granter=a failed=0"
