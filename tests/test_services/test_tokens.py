from app.core.tokens import ENCRYPTED_TOKEN_PREFIX, ConfirmationTokenAuthority


def test_issue_returns_plaintext_and_bcrypt_hash():
    authority = ConfirmationTokenAuthority()
    plaintext, hashed = authority.issue()

    assert len(plaintext) == 32
    assert plaintext not in hashed
    assert hashed.startswith(ENCRYPTED_TOKEN_PREFIX)
    assert authority.looks_encrypted(hashed)


def test_tokens_are_unique():
    authority = ConfirmationTokenAuthority()
    first, _ = authority.issue()
    second, _ = authority.issue()
    assert first != second


def test_verify_round_trip():
    authority = ConfirmationTokenAuthority()
    plaintext, hashed = authority.issue()
    assert authority.verify(hashed, plaintext) is True


def test_verify_rejects_wrong_token():
    authority = ConfirmationTokenAuthority()
    plaintext, hashed = authority.issue()
    other, _ = authority.issue()
    assert authority.verify(hashed, other) is False
    assert authority.verify(hashed, plaintext.upper()) is False


def test_verify_rejects_empty_and_malformed_input():
    authority = ConfirmationTokenAuthority()
    plaintext, hashed = authority.issue()
    assert authority.verify(hashed, "") is False
    assert authority.verify(hashed, None) is False
    assert authority.verify("", plaintext) is False
    assert authority.verify(plaintext, plaintext) is False
    assert authority.verify("$2a$10$notarealhash", plaintext) is False


def test_looks_encrypted():
    assert ConfirmationTokenAuthority.looks_encrypted("$2a$10$abcdefghijklmnopqrstuv") is True
    assert ConfirmationTokenAuthority.looks_encrypted("$2b$12$abcdefghijklmnopqrstuv") is False
    assert ConfirmationTokenAuthority.looks_encrypted("") is False
    assert ConfirmationTokenAuthority.looks_encrypted(None) is False
