from dreamer_api.services.passwords import PasswordHasher

LONG_PASSWORD = "Aa1!" + "x" * 80


def test_hash_and_verify():
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash("Test@1234")

    assert hashed != "Test@1234"
    assert hasher.verify("Test@1234", hashed) is True
    assert hasher.verify("Wrong@1234", hashed) is False


def test_over_long_password_fails_the_same_way_with_or_without_a_hash():
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash("Test@1234")

    assert hasher.verify(LONG_PASSWORD, hashed) is False
    assert hasher.verify(LONG_PASSWORD, None) is False


def test_malformed_hash_does_not_verify():
    assert PasswordHasher(rounds=4).verify("Test@1234", "not-a-bcrypt-hash") is False
