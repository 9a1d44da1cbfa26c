# Core Cryptography Module
"""
Core cryptographic building blocks:
- Secure random secrets and base32 transport encoding
- HOTP/TOTP code computation (HMAC + dynamic truncation)
- AES-GCM sealing of stored secrets
"""
