from vehicle_rental.utils.security import (
    TokenCipher,
    check_hash,
    code_hint,
    generate_hash,
    hash_promo_code,
)


def test_password_hash_roundtrip():
    pw = "Secret123"
    h = generate_hash(pw)
    assert check_hash(pw, h)
    assert not check_hash("wrong", h)


def test_check_hash_tolerates_garbage():
    assert not check_hash("Secret123", "not-a-hash")


def test_promo_hash_is_case_and_space_insensitive():
    assert hash_promo_code(" save10 ") == hash_promo_code("SAVE10")
    assert len(hash_promo_code("SAVE10")) == 64
    assert "SAVE10" not in hash_promo_code("SAVE10")
    assert code_hint("save10") == "10"


def test_token_cipher_accepts_any_secret():
    cipher = TokenCipher("not a fernet key")
    blob = cipher.encrypt("tok_visa")
    assert blob != "tok_visa"
    assert cipher.decrypt(blob) == "tok_visa"
    assert TokenCipher("another secret").decrypt(blob) is None
