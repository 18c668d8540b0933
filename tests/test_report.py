"""Tests for pod_dispatch.report."""

from __future__ import annotations

from dataclasses import replace

import pytest

from pod_dispatch.errors import InformativeError, PlainInformativeError, UsageError
from pod_dispatch.plugins import PluginHandle
from pod_dispatch.report import error_report, is_development_mode, report_error


class ResolverError(Exception):
    pass


def _raised(exc: BaseException) -> BaseException:
    """Return ``exc`` with a real traceback attached."""
    try:
        raise exc
    except BaseException as caught:
        return caught


class TestCancelled:
    def test_not_verbose_returns_one(self, spec, config, output, capsys):
        assert report_error(KeyboardInterrupt(), spec, config, output) == 1
        assert "[!] Cancelled" in capsys.readouterr().out

    def test_verbose_reraises(self, spec, config, output, capsys):
        config.verbose = True
        exc = KeyboardInterrupt()
        with pytest.raises(KeyboardInterrupt) as excinfo:
            report_error(exc, spec, config, output)
        assert excinfo.value is exc
        assert "[!] Cancelled" in capsys.readouterr().out


class TestProcessExit:
    def test_propagates_unchanged(self, spec, config, output, capsys):
        exc = SystemExit(7)
        with pytest.raises(SystemExit) as excinfo:
            report_error(exc, spec, config, output)
        assert excinfo.value is exc
        assert excinfo.value.code == 7
        assert capsys.readouterr().out == ""


class TestUserFacing:
    def test_advisory_message(self, spec, config, output, capsys):
        exc = InformativeError("No `Podfile' found in the project directory.")
        assert report_error(exc, spec, config, output) == 1
        out = capsys.readouterr().out
        assert "[!] No `Podfile' found in the project directory." in out
        assert "Traceback" not in out

    def test_shown_even_when_silent(self, spec, config, output, capsys):
        config.silent = True
        report_error(InformativeError("Boom."), spec, config, output)
        assert "[!] Boom." in capsys.readouterr().out

    def test_plain_informative_has_no_marker(self, spec, config, output, capsys):
        report_error(PlainInformativeError("just text"), spec, config, output)
        out = capsys.readouterr().out
        assert "just text" in out
        assert "[!]" not in out

    def test_usage_error_prints_banner(self, spec, registry, config, output, capsys):
        report_error(UsageError("Bad.", registry.root), spec, config, output)
        out = capsys.readouterr().out
        assert "Usage:" in out
        assert "$ pod COMMAND" in out
        assert "[!] Bad." in out

    def test_registered_collaborator_error(self, spec, config, output, capsys):
        spec = replace(spec, informative_errors=(ResolverError,))
        assert report_error(ResolverError("Unable to satisfy"), spec, config, output) == 1
        out = capsys.readouterr().out
        assert "[!] Unable to satisfy" in out
        assert "MARKDOWN TEMPLATE" not in out


class TestInternalFault:
    def test_prints_report_and_returns_one(self, spec, config, output, capsys):
        exc = _raised(ValueError("unexpected nil"))
        assert report_error(exc, spec, config, output, ["install"]) == 1
        out = capsys.readouterr().out
        assert "### Command" in out
        assert "pod install" in out
        assert "ValueError - unexpected nil" in out
        assert "Traceback" in out

    def test_development_mode_reraises(self, spec, config, output, monkeypatch, capsys):
        monkeypatch.setenv("COCOA_PODS_ENV", "development")
        exc = ValueError("unexpected nil")
        with pytest.raises(ValueError) as excinfo:
            report_error(exc, spec, config, output)
        assert excinfo.value is exc
        assert capsys.readouterr().out == ""

    def test_other_env_value_is_not_development(self, spec, monkeypatch):
        monkeypatch.setenv("COCOA_PODS_ENV", "production")
        assert not is_development_mode(spec)


class TestErrorReport:
    def test_sections(self, spec):
        text = error_report(_raised(RuntimeError("x")), spec, ["repo", "add"])
        for section in ["### Command", "### Report", "### Stack", "### Plugins", "### Error"]:
            assert section in text
        assert "pod repo add" in text
        assert "CocoaPods : 1.2.3" in text

    def test_lists_plugins(self, spec):
        plugins = [PluginHandle("cocoapods-keys", lambda: None, "2.0.0")]
        text = error_report(RuntimeError("x"), spec, plugins=plugins)
        assert "cocoapods-keys" in text
        assert "2.0.0" in text

    def test_no_plugins(self, spec):
        assert "(none)" in error_report(RuntimeError("x"), spec)

    def test_issue_search_link(self, spec):
        spec = replace(spec, issues_url="https://example.invalid/issues")
        text = error_report(RuntimeError("x"), spec)
        assert "https://example.invalid/issues/search?q=RuntimeError" in text
