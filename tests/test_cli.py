"""Tests for the command-line entry point."""

import pytest

import main


class TestCli:
    def test_tier_command(self, capsys):
        assert main.main(["tier", "--instagram", "12000", "--tiktok", "60000"]) == 0
        out = capsys.readouterr().out
        assert "(major)" in out
        assert "50,000" in out

    def test_tier_defaults_to_emerging(self, capsys):
        main.main(["tier"])
        assert "(emerging)" in capsys.readouterr().out

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main.main([])
