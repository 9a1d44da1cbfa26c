# stein_mfa Test Suite
"""
Test suite including:
- Unit tests (RFC test vectors, pyotp parity)
- Integration tests (MFA service, audit events, QR enrollment)
- Security tests (invalid inputs, tampering)

Run with: pytest
Coverage: coverage run -m pytest && coverage report
"""
