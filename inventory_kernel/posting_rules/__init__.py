"""Posting rules: how each document type's lines become ledger movements."""

from inventory_kernel.posting_rules.base import (
    BasePostingRule,
    InboundRule,
    Leg,
    MovementSpec,
    OutboundRule,
    PostingRule,
    QuantityPolicy,
)
from inventory_kernel.posting_rules.registry import (
    PostingRuleRegistry,
    get_default_registry,
    register_rule,
)

__all__ = [
    "BasePostingRule",
    "InboundRule",
    "Leg",
    "MovementSpec",
    "OutboundRule",
    "PostingRule",
    "PostingRuleRegistry",
    "QuantityPolicy",
    "get_default_registry",
    "register_rule",
]
