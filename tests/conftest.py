"""Shared test fixtures for pod-dispatch."""

from __future__ import annotations

import pytest

from pod_dispatch.app import create_registry
from pod_dispatch.config import Config
from pod_dispatch.output import Output
from pod_dispatch.spec import CliSpec


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep development mode and NO_COLOR out of every test unless set explicitly."""
    monkeypatch.delenv("COCOA_PODS_ENV", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)


@pytest.fixture()
def spec():
    return CliSpec(
        prog_name="pod",
        app_display_name="CocoaPods",
        version="1.2.3",
        description="CocoaPods, the Cocoa library package manager.",
        plugin_prefixes=("claide", "cocoapods"),
        license_check_command=(),
    )


@pytest.fixture()
def registry(spec):
    return create_registry(spec)


@pytest.fixture()
def config():
    return Config()


@pytest.fixture()
def output(config):
    return Output(config, ansi=False)
