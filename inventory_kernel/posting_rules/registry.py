"""
Posting rule registry.

Lookup of posting rules by document type, with versioning.  Document modules
register their rules on import.
"""

from inventory_kernel.posting_rules.base import PostingRule


class PostingRuleRegistry:

    def __init__(self):
        # document_type -> version -> rule
        self._rules: dict[str, dict[int, PostingRule]] = {}
        self._default_versions: dict[str, int] = {}

    def register(self, rule: PostingRule, set_default: bool = True) -> None:
        document_type = rule.document_type
        self._rules.setdefault(document_type, {})[rule.version] = rule
        if set_default:
            self._default_versions[document_type] = rule.version

    def get_rule(
        self,
        document_type: str,
        version: int | None = None,
    ) -> PostingRule | None:
        """
        Rule for a document type, or None.

        With no version, the default version is used, falling back to the
        highest registered one.
        """
        versions = self._rules.get(document_type)
        if not versions:
            return None
        if version is None:
            version = self._default_versions.get(document_type, max(versions))
        return versions.get(version)

    def require_rule(self, document_type: str) -> PostingRule:
        rule = self.get_rule(document_type)
        if rule is None:
            raise ValueError(f"No posting rule registered for document type: {document_type}")
        return rule

    def list_document_types(self) -> list[str]:
        return sorted(self._rules)


_default_registry = PostingRuleRegistry()


def get_default_registry() -> PostingRuleRegistry:
    return _default_registry


def register_rule(rule: PostingRule, set_default: bool = True) -> None:
    """Register a rule in the default registry."""
    _default_registry.register(rule, set_default)
