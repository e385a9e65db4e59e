import pytest

from verichain.application.passwords import ACTION_SECRETS, verify_password


@pytest.mark.parametrize("action,secret", sorted(ACTION_SECRETS.items()))
def test_known_actions(action, secret):
    assert verify_password(secret, action) is True
    assert verify_password(secret + "x", action) is False


def test_secrets_are_not_interchangeable():
    assert verify_password("manufacturer123", "fund_escrow") is False


@pytest.mark.parametrize("action", ["confirm_delivery", "", "REGISTER_PRODUCT"])
def test_unknown_actions_always_false(action):
    assert verify_password("manufacturer123", action) is False
    assert verify_password("", action) is False
