"""Tests for the credential store."""

import pytest

from surveillance_console.auth import CredentialStore
from surveillance_console.errors import (
    AlreadyExists,
    AuthReason,
    AuthenticationFailed,
    GENERIC_AUTH_MESSAGE,
    HashingFailure,
    NotFound,
    PermissionDenied,
    Protected,
)
from surveillance_console.models import Identity, Role

from .conftest import ADMIN_PASSWORD, OPERATOR_PASSWORD


class TestAuthenticate:
    """Login checks against the seeded identities."""

    def test_seeded_admin_authenticates(self, credentials):
        result = credentials.authenticate("admin", ADMIN_PASSWORD)
        assert result.success
        assert result.principal.login == "admin"
        assert result.principal.is_admin

    def test_seeded_operator_is_not_admin(self, credentials):
        result = credentials.authenticate("operator1", OPERATOR_PASSWORD)
        assert result.success
        assert result.principal.role is Role.OPERATOR
        assert not credentials.is_administrator("operator1")
        assert credentials.is_administrator("admin")

    def test_wrong_password(self, credentials):
        result = credentials.authenticate("admin", "wrong")
        assert not result.success
        assert result.principal is None
        assert result.reason is AuthReason.INVALID_CREDENTIALS

    def test_unknown_login(self, credentials):
        result = credentials.authenticate("nobody", "whatever")
        assert not result.success
        assert result.reason is AuthReason.NOT_FOUND

    def test_failure_messages_are_indistinguishable(self, credentials):
        """Unknown login and wrong password look the same to the caller."""
        unknown = credentials.authenticate("nobody", "whatever")
        wrong = credentials.authenticate("admin", "wrong")
        assert unknown.message == wrong.message == GENERIC_AUTH_MESSAGE

    def test_corrupt_digest_is_a_verification_error(self, credentials):
        credentials._identities["broken"] = Identity("broken", "bogus$salt$digest", Role.OPERATOR)
        result = credentials.authenticate("broken", "anything")
        assert not result.success
        assert result.reason is AuthReason.VERIFICATION_ERROR

    def test_raise_for_failure(self, credentials):
        with pytest.raises(AuthenticationFailed) as exc_info:
            credentials.authenticate("admin", "wrong").raise_for_failure()
        assert exc_info.value.reason is AuthReason.INVALID_CREDENTIALS
        assert str(exc_info.value) == GENERIC_AUTH_MESSAGE

    def test_digest_is_not_plaintext(self, credentials):
        assert credentials._identities["admin"].password_hash != ADMIN_PASSWORD
        assert "password_hash" not in credentials.get_identity("admin").to_dict()


class TestIdentityManagement:
    """Adding, listing and removing identities."""

    def test_admin_adds_identity(self, credentials, admin):
        principal = credentials.add_identity(admin, "guard", "night4shift", Role.OPERATOR)
        assert principal.login == "guard"
        assert "guard" in credentials
        assert credentials.authenticate("guard", "night4shift").success

    def test_operator_cannot_add_identity(self, credentials, operator):
        with pytest.raises(PermissionDenied):
            credentials.add_identity(operator, "guard", "night4shift", Role.OPERATOR)
        assert "guard" not in credentials

    def test_duplicate_login(self, credentials, admin):
        with pytest.raises(AlreadyExists):
            credentials.add_identity(admin, "operator1", "other123", Role.ADMINISTRATOR)
        assert not credentials.is_administrator("operator1")

    def test_list_identities(self, credentials, admin, operator):
        logins = [p.login for p in credentials.list_identities(admin)]
        assert logins == ["admin", "operator1"]
        with pytest.raises(PermissionDenied):
            credentials.list_identities(operator)

    def test_primary_admin_is_protected(self, credentials, admin):
        with pytest.raises(Protected):
            credentials.remove_identity(admin, "admin")
        assert "admin" in credentials

    def test_remove_unknown(self, credentials, admin):
        with pytest.raises(NotFound):
            credentials.remove_identity(admin, "nobody")

    def test_remove_identity(self, credentials, admin):
        credentials.remove_identity(admin, "operator1")
        assert len(credentials) == 1
        result = credentials.authenticate("operator1", OPERATOR_PASSWORD)
        assert result.reason is AuthReason.NOT_FOUND

    def test_operator_cannot_remove(self, credentials, operator):
        with pytest.raises(PermissionDenied):
            credentials.remove_identity(operator, "operator1")


class TestChangePassword:

    def test_change_password(self, credentials):
        credentials.change_password("operator1", OPERATOR_PASSWORD, "fresh4pass")
        assert credentials.authenticate("operator1", "fresh4pass").success
        assert not credentials.authenticate("operator1", OPERATOR_PASSWORD).success

    def test_wrong_old_password(self, credentials):
        with pytest.raises(AuthenticationFailed):
            credentials.change_password("operator1", "wrong", "fresh4pass")
        assert credentials.authenticate("operator1", OPERATOR_PASSWORD).success

    def test_unknown_login(self, credentials):
        with pytest.raises(NotFound):
            credentials.change_password("nobody", "x", "fresh4pass")


class TestHashingFailure:
    """A broken hash method never crashes the store."""

    def test_seeds_are_skipped(self):
        store = CredentialStore(hash_method="nope:1")
        store.initialize([("admin", "admin123", Role.ADMINISTRATOR)])
        assert len(store) == 0

    def test_add_identity_reports_failure(self, admin):
        store = CredentialStore(hash_method="nope:1")
        with pytest.raises(HashingFailure):
            store.add_identity(admin, "guard", "night4shift", Role.OPERATOR)
        assert "guard" not in store
