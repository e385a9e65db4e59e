# Static action -> secret table. Not real authentication; it only gates the
# demo dashboards' write actions.
ACTION_SECRETS = {
    "register_product": "manufacturer123",
    "fund_escrow": "escrow456",
    "add_event": "logistics789",
}


def verify_password(password: str, action: str) -> bool:
    expected = ACTION_SECRETS.get(action)
    return expected is not None and password == expected
