"""
Unit tests for permission types and conversions.
"""

import pytest

from service_rebac.app.permissions.models import (
    GRANT_RELATIONS,
    Permission,
    grant_relation_for,
    permission_to_relation,
    relation_to_permission,
)


class TestPermissionFromMethod:
    """Test method to permission mapping."""

    @pytest.mark.parametrize("method,is_list,expected", [
        ("GET", True, Permission.ALLOW_LIST),
        ("GET", False, Permission.ALLOW_GET),
        ("POST", False, Permission.ALLOW_POST),
        ("POST", True, Permission.ALLOW_POST),
        ("PUT", False, Permission.ALLOW_PUT),
        ("PATCH", False, Permission.ALLOW_PUT),
        ("DELETE", False, Permission.ALLOW_DELETE),
        ("OPTIONS", False, Permission.ALLOW_GET),
        ("get", True, Permission.ALLOW_LIST),
    ])
    def test_from_method(self, method, is_list, expected):
        """Test every method maps to exactly one permission."""
        assert Permission.from_method(method, is_list) is expected

    def test_check_relations(self):
        """Test check relations."""
        assert Permission.ALLOW_ALL.relation == "admin"
        assert Permission.ALLOW_LIST.relation == "can_list"
        assert Permission.ALLOW_GET.relation == "can_read"
        assert Permission.ALLOW_POST.relation == "can_create"
        assert Permission.ALLOW_PUT.relation == "can_update"
        assert Permission.ALLOW_DELETE.relation == "can_delete"


class TestPermissionParsing:
    """Test parsing and implication."""

    @pytest.mark.parametrize("value", ["AllowGet", "allowget", "ALLOW_GET", "allow_get"])
    def test_parse(self, value):
        """Test accepted spellings."""
        assert Permission.parse(value) is Permission.ALLOW_GET

    def test_parse_unknown(self):
        """Test unknown values."""
        assert Permission.parse("ReadEverything") is None

    def test_implies(self):
        """Test AllowAll implies everything."""
        assert Permission.ALLOW_ALL.implies(Permission.ALLOW_DELETE)
        assert Permission.ALLOW_GET.implies(Permission.ALLOW_GET)
        assert not Permission.ALLOW_GET.implies(Permission.ALLOW_LIST)


class TestRelationConversion:
    """Test permission <-> relation tables."""

    def test_permission_to_relation(self):
        """Test the grant relation table."""
        assert permission_to_relation("AllowAll") == "ALLOW_ALL"
        assert permission_to_relation("AllowDelete") == "ALLOW_DELETE"

    def test_unknown_permission_defaults_to_read(self):
        """Test unknown permissions degrade to read-only."""
        assert permission_to_relation("bogus") == "ALLOW_GET"
        assert relation_to_permission("BOGUS") == "AllowGet"

    def test_relation_table_round_trip(self):
        """Test every grant relation maps back to its permission."""
        for relation in GRANT_RELATIONS:
            assert permission_to_relation(relation_to_permission(relation)) == relation

    def test_grant_relation_for_check_relation(self):
        """Test check relation names are accepted."""
        assert grant_relation_for("can_read") == "ALLOW_GET"
        assert grant_relation_for("admin") == "ALLOW_ALL"
        assert grant_relation_for("AllowPost") == "ALLOW_POST"
