from .wallet import (
    address_from_private_key,
    generate_keypair,
    private_key_from_hex,
    private_key_to_hex,
    sign_message,
    verify_signature,
)
