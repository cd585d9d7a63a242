"""Admin allow-list policy tests."""

from appdedupe.auth.policy import AdminPolicy, get_admin_policy, normalize_email


class TestAdminPolicy:
    def test_exact_match(self):
        assert AdminPolicy(["boss@example.com"]).is_admin("boss@example.com") is True

    def test_trimmed_case_insensitive_match(self):
        policy = AdminPolicy(["  Boss@Example.com "])
        assert policy.is_admin(" BOSS@example.COM") is True

    def test_other_email_rejected(self):
        assert AdminPolicy(["boss@example.com"]).is_admin("bossy@example.com") is False

    def test_empty_inputs(self):
        policy = AdminPolicy(["", "  "])
        assert policy.is_admin("") is False
        assert policy.is_admin(None) is False

    def test_expected_role_promotes_allow_listed(self):
        policy = AdminPolicy(["boss@example.com"])
        assert policy.expected_role("boss@example.com", "user") == "admin"
        assert policy.expected_role("someone@example.com", "user") == "user"

    def test_normalize_email(self):
        assert normalize_email("  A@B.C ") == "a@b.c"

    def test_policy_from_settings(self):
        """The test settings allow-list admin@example.com."""
        assert get_admin_policy().is_admin("admin@example.com") is True
        assert get_admin_policy().is_admin("jane@example.com") is False
