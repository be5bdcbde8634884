"""Tests for process startup (zep_agent.__main__)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from zep_agent.__main__ import _check_api_keys, main
from zep_agent.agent.session import BootstrapError


class TestCheckApiKeys:
    def test_both_present(self, default_config):
        assert _check_api_keys(default_config) is True

    def test_zep_key_missing(self, default_config, capsys):
        default_config.zep_api_key = None
        assert _check_api_keys(default_config) is False
        assert "ZEP_API_KEY" in capsys.readouterr().out


class TestMain:
    def test_version(self, default_config, capsys):
        default_config.show_version = True
        with patch("zep_agent.config.load_config", return_value=default_config):
            main()
        assert "zep-agent" in capsys.readouterr().out

    def test_missing_keys_exit_1(self, default_config):
        default_config.anthropic_api_key = None
        with patch("zep_agent.config.load_config", return_value=default_config), \
                patch("zep_agent.utils.logger.setup_logging"):
            with pytest.raises(SystemExit) as info:
                main()
        assert info.value.code == 1

    def test_bootstrap_failure_exit_1(self, default_config):
        bootstrap = MagicMock()
        bootstrap.return_value.ensure_ready.side_effect = BootstrapError("no user")
        with patch("zep_agent.config.load_config", return_value=default_config), \
                patch("zep_agent.utils.logger.setup_logging"), \
                patch("zep_agent.llm.create_backend"), \
                patch("zep_agent.memory_service.MemoryService"), \
                patch("zep_agent.agent.session.SessionBootstrap", bootstrap):
            with pytest.raises(SystemExit) as info:
                main()
        assert info.value.code == 1

    def test_clean_run_exit_0(self, default_config):
        with patch("zep_agent.config.load_config", return_value=default_config), \
                patch("zep_agent.utils.logger.setup_logging"), \
                patch("zep_agent.llm.create_backend"), \
                patch("zep_agent.memory_service.MemoryService"), \
                patch("zep_agent.agent.session.SessionBootstrap"), \
                patch("zep_agent.agent.shell.Shell") as shell:
            shell.return_value.run.return_value = 0
            with pytest.raises(SystemExit) as info:
                main()
        assert info.value.code == 0
