# test_imports.py
import importlib

import pytest


@pytest.mark.parametrize("module", [
    "ai_savings_tracker.cli.main",
    "ai_savings_tracker.config.loader",
    "ai_savings_tracker.core.aggregator",
    "ai_savings_tracker.core.checkpoint",
    "ai_savings_tracker.core.merge",
    "ai_savings_tracker.core.pricing",
    "ai_savings_tracker.core.report",
    "ai_savings_tracker.core.savings",
    "ai_savings_tracker.core.token_counter",
    "ai_savings_tracker.storage.checkpoint_store",
    "ai_savings_tracker.storage.config_store",
    "ai_savings_tracker.storage.documents",
    "ai_savings_tracker.storage.models",
])
def test_module_imports(module):
    assert importlib.import_module(module) is not None
