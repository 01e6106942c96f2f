from farmbot.config import split_ids
from farmbot.services.role_router import Role, RoleRouter, normalize_user_id


class TestRoleRouter:
    def test_listed_seller(self):
        router = RoleRouter(seller_ids=["224620000001"])
        assert router.route("224620000001") == Role.SELLER

    def test_listed_expense_manager(self):
        router = RoleRouter(expense_manager_ids=["224630000002"])
        assert router.route("224630000002") == Role.EXPENSE_MANAGER

    def test_unknown_user_is_primary_reporter(self):
        router = RoleRouter(seller_ids=["224620000001"], expense_manager_ids=["224630000002"])
        assert router.route("224699999999") == Role.PRIMARY_REPORTER

    def test_empty_tables(self):
        assert RoleRouter().route("224620000001") == Role.PRIMARY_REPORTER

    def test_formatting_differences_are_ignored(self):
        router = RoleRouter(seller_ids=["+224 620 00 00 01"])
        assert router.route("224620000001") == Role.SELLER

    def test_route_is_deterministic(self):
        router = RoleRouter(seller_ids=["1"], expense_manager_ids=["2"])
        assert {router.route("2") for _ in range(5)} == {Role.EXPENSE_MANAGER}


class TestNormalizeUserId:
    def test_keeps_digits(self):
        assert normalize_user_id("+224-620 000") == "224620000"

    def test_non_numeric_id_is_trimmed(self):
        assert normalize_user_id("  tester ") == "tester"

    def test_none(self):
        assert normalize_user_id(None) == ""


class TestSplitIds:
    def test_comma_separated(self):
        assert split_ids("224620000001, 224620000002,,") == ["224620000001", "224620000002"]

    def test_empty(self):
        assert split_ids("") == []
        assert split_ids(None) == []
