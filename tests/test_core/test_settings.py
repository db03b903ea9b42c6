"""
Tests for gateway settings.
"""

import pytest
from pydantic import ValidationError

from scopegate.adapters.base import CrudClient
from scopegate.config import GatewaySettings
from scopegate.core.dsl import ListResult
from scopegate.core.errors import StoreError
from scopegate.gateway import ScopedGateway
from scopegate.logging import LogFormat, LogLevel


class TestGatewaySettings:
    def test_defaults(self):
        settings = GatewaySettings()
        assert settings.organization_field == "organization_id"
        assert settings.branch_field == "branch_id"
        assert settings.branch_self_field == "id"
        assert settings.missing_column_codes == ("42703",)
        assert settings.probe_on_startup is False
        assert settings.log_level == LogLevel.INFO
        assert settings.log_format == LogFormat.JSON

    def test_frozen(self):
        settings = GatewaySettings()
        with pytest.raises(ValidationError):
            settings.branch_field = "shop_id"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SCOPEGATE_ORGANIZATION_FIELD", " tenant_id ")
        monkeypatch.setenv("SCOPEGATE_BRANCH_FIELD", "shop_id")
        monkeypatch.setenv("SCOPEGATE_MISSING_COLUMN_CODES", "42703, PGRST204,")
        monkeypatch.setenv("SCOPEGATE_PROBE_ON_STARTUP", "yes")
        monkeypatch.setenv("SCOPEGATE_LOG_LEVEL", "debug")
        monkeypatch.setenv("SCOPEGATE_LOG_FORMAT", "TEXT")
        monkeypatch.setenv("UNRELATED", "ignored")

        settings = GatewaySettings()
        assert settings.organization_field == "tenant_id"
        assert settings.branch_field == "shop_id"
        assert settings.branch_self_field == "id"
        assert settings.missing_column_codes == ("42703", "PGRST204")
        assert settings.probe_on_startup is True
        assert settings.log_level == LogLevel.DEBUG
        assert settings.log_format == LogFormat.TEXT

    def test_empty_variables_keep_defaults(self, monkeypatch):
        monkeypatch.setenv("SCOPEGATE_BRANCH_FIELD", "")
        assert GatewaySettings().branch_field == "branch_id"

    def test_init_values_override_environment(self, monkeypatch):
        monkeypatch.setenv("SCOPEGATE_BRANCH_FIELD", "shop_id")
        settings = GatewaySettings(branch_field="site_id", missing_column_codes="42703,PGRST204")
        assert settings.branch_field == "site_id"
        assert settings.missing_column_codes == ("42703", "PGRST204")

    def test_from_env_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("CONSOLE_PROBE_ON_STARTUP", "1")
        monkeypatch.setenv("SCOPEGATE_BRANCH_FIELD", "shop_id")
        settings = GatewaySettings.from_env(prefix="CONSOLE_")
        assert settings.probe_on_startup is True
        assert settings.branch_field == "branch_id"

    def test_from_env_default_prefix(self, monkeypatch):
        monkeypatch.setenv("SCOPEGATE_ORGANIZATION_FIELD", "org_id")
        assert GatewaySettings.from_env().organization_field == "org_id"

    def test_rejects_unknown_level(self, monkeypatch):
        monkeypatch.setenv("SCOPEGATE_LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError):
            GatewaySettings()

    @pytest.mark.asyncio
    async def test_extra_missing_column_codes_enable_retry(self, admin_scope, policy):
        class PostgrestSchemaCacheClient(CrudClient):
            def __init__(self):
                self.calls = 0

            async def get_list(self, request):
                self.calls += 1
                if self.calls == 1:
                    raise StoreError(
                        "column branches.organization_id does not exist",
                        code="PGRST204",
                    )
                return ListResult(data=[], total=0)

        settings = GatewaySettings(missing_column_codes=("42703", "PGRST204"))
        client = PostgrestSchemaCacheClient()
        gateway = ScopedGateway(client, admin_scope, policy, settings=settings)
        await gateway.get_list("branches")
        assert client.calls == 2
