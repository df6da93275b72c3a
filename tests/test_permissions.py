"""Tests for the permission evaluator."""

import pytest

from brains_core.permissions import (
    PermissionConfig,
    PermissionLevel,
    PermissionRule,
    PermissionService,
    filter_by_permission,
    has_permission,
)

PUBLIC = PermissionLevel.PUBLIC
TRUSTED = PermissionLevel.TRUSTED
ANCHOR = PermissionLevel.ANCHOR


def make_service(**config) -> PermissionService:
    return PermissionService(PermissionConfig.model_validate(config))


class TestExplicitLists:
    """Tests for explicit anchor and trusted lists."""

    @pytest.fixture
    def service(self):
        return make_service(
            anchors=["matrix:@admin:example.org", "cli:admin-user"],
            trusted=["matrix:@helper:example.org", "discord:helper#1234"],
        )

    def test_anchor_users(self, service):
        """Exact matches in the anchor list resolve to anchor."""
        assert service.determine_level("matrix", "@admin:example.org") == ANCHOR
        assert service.determine_level("cli", "admin-user") == ANCHOR

    def test_trusted_users(self, service):
        """Exact matches in the trusted list resolve to trusted."""
        assert service.determine_level("matrix", "@helper:example.org") == TRUSTED
        assert service.determine_level("discord", "helper#1234") == TRUSTED

    def test_unknown_users_are_public(self, service):
        """Users on no list and matching no rule are public."""
        assert service.determine_level("cli", "random-user") == PUBLIC

    def test_same_id_on_other_interface_does_not_collide(self, service):
        """The interface type is part of the identity."""
        assert service.determine_level("matrix", "admin-user") == PUBLIC
        assert service.determine_level("discord", "@admin:example.org") == PUBLIC


class TestPatternRules:
    """Tests for ordered glob rules."""

    def test_explicit_lists_beat_rules(self):
        """Explicit lists win even when a rule would also match."""
        service = make_service(
            anchors=["matrix:@superadmin:example.org"],
            trusted=["cli:trusted-user"],
            rules=[
                {"pattern": "cli:*", "level": "anchor"},
                {"pattern": "matrix:@*:example.org", "level": "public"},
            ],
        )
        assert service.determine_level("cli", "trusted-user") == TRUSTED
        assert service.determine_level("matrix", "@superadmin:example.org") == ANCHOR
        assert service.determine_level("cli", "other-user") == ANCHOR

    def test_first_matching_rule_wins_over_more_specific(self):
        """Rule order decides, not specificity."""
        service = make_service(
            rules=[
                {"pattern": "cli:*", "level": "anchor"},
                {"pattern": "cli:admin-*", "level": "trusted"},
            ]
        )
        assert service.determine_level("cli", "admin-bob") == ANCHOR

    def test_first_matching_rule_wins_when_specific_comes_first(self):
        """A narrower rule listed first shadows a broader one."""
        service = make_service(
            rules=[
                {"pattern": "test:user*", "level": "trusted"},
                {"pattern": "test:*", "level": "anchor"},
            ]
        )
        assert service.determine_level("test", "user123") == TRUSTED
        assert service.determine_level("test", "other") == ANCHOR

    def test_prefix_suffix_and_multi_wildcards(self):
        """'*' matches any run of characters anywhere in the pattern."""
        service = make_service(
            rules=[
                {"pattern": "matrix:@*:*.admin.org", "level": "trusted"},
                {"pattern": "cli:admin-*", "level": "anchor"},
                {"pattern": "discord:*#1234", "level": "trusted"},
            ]
        )
        assert service.determine_level("matrix", "@user:deep.sub.admin.org") == TRUSTED
        assert service.determine_level("cli", "admin-user1") == ANCHOR
        assert service.determine_level("cli", "user-admin") == PUBLIC
        assert service.determine_level("discord", "user1#1234") == TRUSTED
        assert service.determine_level("discord", "user1#5678") == PUBLIC

    def test_regex_metacharacters_are_literal(self):
        """Only '*' is special; '.' and '+' match themselves."""
        service = make_service(
            rules=[
                {"pattern": "test:user.123", "level": "trusted"},
                {"pattern": "test:user+123", "level": "anchor"},
            ]
        )
        assert service.determine_level("test", "user.123") == TRUSTED
        assert service.determine_level("test", "userX123") == PUBLIC
        assert service.determine_level("test", "user+123") == ANCHOR

    def test_pattern_must_match_whole_key(self):
        """Patterns are anchored at both ends."""
        service = make_service(rules=[{"pattern": "cli:bob", "level": "anchor"}])
        assert service.determine_level("cli", "bobby") == PUBLIC
        assert service.determine_level("xcli", "bob") == PUBLIC

    def test_trailing_newline_does_not_match(self):
        """A user id with a trailing newline is a different identity."""
        service = make_service(
            rules=[
                {"pattern": "matrix:@alice", "level": "anchor"},
                {"pattern": "cli:admin-*", "level": "trusted"},
            ]
        )
        assert service.determine_level("matrix", "@alice") == ANCHOR
        assert service.determine_level("matrix", "@alice\n") == PUBLIC
        assert service.determine_level("cli", "admin-x\n") == TRUSTED
        assert service.determine_level("cli", "x\nadmin-y") == PUBLIC

    def test_empty_config_is_public(self):
        """No configuration means everyone is public."""
        service = PermissionService()
        assert service.determine_level("cli", "admin-user") == PUBLIC

    def test_invalid_rule_level_rejected(self):
        """Config validation rejects unknown levels."""
        with pytest.raises(ValueError):
            PermissionRule(pattern="cli:*", level="root")


class TestHasPermission:
    """Tests for the level ordering."""

    @pytest.mark.parametrize(
        "granted,required,expected",
        [
            (PUBLIC, PUBLIC, True),
            (TRUSTED, PUBLIC, True),
            (ANCHOR, PUBLIC, True),
            (PUBLIC, TRUSTED, False),
            (TRUSTED, TRUSTED, True),
            (ANCHOR, TRUSTED, True),
            (PUBLIC, ANCHOR, False),
            (TRUSTED, ANCHOR, False),
            (ANCHOR, ANCHOR, True),
        ],
    )
    def test_total_order(self, granted, required, expected):
        """Granted satisfies required iff it is at least as high."""
        assert has_permission(granted, required) is expected
        assert PermissionService.has_permission(granted, required) is expected

    def test_accepts_lowercase_strings(self):
        """Serialized level names are accepted."""
        assert has_permission("anchor", "trusted") is True
        assert has_permission("public", "trusted") is False


class TestFilterByPermission:
    """Tests for the generic visibility filter."""

    def items(self):
        return [
            {"name": "help", "visibility": "public"},
            {"name": "status", "visibility": "trusted"},
            {"name": "admin", "visibility": "anchor"},
            {"name": "basic"},
        ]

    def test_missing_visibility_is_public(self):
        """Untagged items are visible to public callers."""
        names = [i["name"] for i in filter_by_permission(self.items(), PUBLIC)]
        assert names == ["help", "basic"]

    def test_trusted_sees_public_and_trusted(self):
        """Order of the input is preserved."""
        names = [i["name"] for i in filter_by_permission(self.items(), TRUSTED)]
        assert names == ["help", "status", "basic"]

    def test_anchor_sees_everything(self):
        """Anchor callers see every item."""
        assert filter_by_permission(self.items(), ANCHOR) == self.items()

    def test_attribute_items(self):
        """Objects exposing a visibility attribute are filtered too."""

        class Item:
            def __init__(self, visibility):
                self.visibility = visibility

        items = [Item(None), Item(ANCHOR)]
        assert filter_by_permission(items, PUBLIC) == [items[0]]

    def test_empty(self):
        """Empty input gives empty output."""
        assert filter_by_permission([], ANCHOR) == []
