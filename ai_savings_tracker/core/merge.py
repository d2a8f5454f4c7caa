"""
Structural merge of configuration documents.

Applies a provider/model patch on top of a user-owned configuration
without dropping keys the patch does not mention.
"""

from enum import Enum
from typing import Any, Dict, Mapping

from ai_savings_tracker.config.loader import ProviderSettings


class NodeKind(Enum):
    """Shape of a value inside a configuration document."""
    MAPPING = "mapping"    # Composes key-by-key during a merge
    SEQUENCE = "sequence"  # Replaced wholesale, never concatenated
    SCALAR = "scalar"      # Strings, numbers and booleans
    NULL = "null"


def node_kind(value: Any) -> NodeKind:
    """Classify a configuration value."""
    if value is None:
        return NodeKind.NULL
    if isinstance(value, Mapping):
        return NodeKind.MAPPING
    if isinstance(value, (list, tuple)):
        return NodeKind.SEQUENCE
    return NodeKind.SCALAR


def deep_merge(target: Mapping[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge a patch document into a target document.

    Nested mappings compose. Every other combination lets the patch value
    replace the target value, including when the types disagree. Neither
    input is modified.

    Args:
        target: Existing configuration document
        patch: Authoritative patch document

    Returns:
        New merged document

    Raises:
        TypeError: If target or patch is not a mapping
    """
    if node_kind(target) is not NodeKind.MAPPING:
        raise TypeError(f"target must be a mapping, got {type(target).__name__}")
    if node_kind(patch) is not NodeKind.MAPPING:
        raise TypeError(f"patch must be a mapping, got {type(patch).__name__}")

    merged = dict(target)
    for key, incoming in patch.items():
        existing = merged.get(key)
        if (node_kind(existing) is NodeKind.MAPPING
                and node_kind(incoming) is NodeKind.MAPPING):
            merged[key] = deep_merge(existing, incoming)
        else:
            merged[key] = incoming
    return merged


def build_provider_patch(settings: ProviderSettings) -> Dict[str, Any]:
    """Build the patch that registers a provider and makes its model the default.

    Args:
        settings: Provider endpoint, credentials and model definition

    Returns:
        Patch document for deep_merge
    """
    model_ref = f"{settings.provider_id}/{settings.model_id}"
    model_entry = {
        "id": settings.model_id,
        "name": settings.model_name,
        "reasoning": settings.reasoning,
        "input": list(settings.input_modalities),
        "cost": {
            "input": settings.input_cost_per_million,
            "output": settings.output_cost_per_million,
            "cacheRead": 0,
            "cacheWrite": 0,
        },
        "contextWindow": settings.context_window,
        "maxTokens": settings.max_tokens,
    }

    return {
        "models": {
            "mode": "merge",
            "providers": {
                settings.provider_id: {
                    "baseUrl": settings.base_url,
                    "apiKey": settings.api_key,
                    "api": settings.api,
                    "models": [model_entry],
                }
            },
        },
        "agents": {
            "defaults": {
                "model": {"primary": model_ref},
                "models": {model_ref: {"alias": settings.alias}},
            }
        },
    }
