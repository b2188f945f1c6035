"""
Unit-tests for wallet.wallet
"""

from wallet import wallet


def test_address_is_raw_public_key_hex():
    private_key, address = wallet.generate_keypair()
    assert len(address) == 64
    assert address == wallet.address_from_private_key(private_key)


def test_sign_and_verify():
    private_key, address = wallet.generate_keypair()
    signature = wallet.sign_message(private_key, b"payload")
    assert wallet.verify_signature(address, b"payload", signature)
    assert not wallet.verify_signature(address, b"other payload", signature)


def test_verify_with_other_key_fails():
    private_key, _ = wallet.generate_keypair()
    _, other_address = wallet.generate_keypair()
    signature = wallet.sign_message(private_key, b"payload")
    assert not wallet.verify_signature(other_address, b"payload", signature)


def test_malformed_inputs_do_not_raise():
    _, address = wallet.generate_keypair()
    assert not wallet.verify_signature(address, b"m", None)
    assert not wallet.verify_signature(address, b"m", "zz")
    assert not wallet.verify_signature("not-hex", b"m", "00" * 64)
    assert not wallet.verify_signature("00" * 16, b"m", "00" * 64)
    assert not wallet.verify_signature("", b"m", "00" * 64)


def test_private_key_hex_roundtrip():
    private_key, address = wallet.generate_keypair()
    restored = wallet.private_key_from_hex(wallet.private_key_to_hex(private_key))
    assert wallet.address_from_private_key(restored) == address
