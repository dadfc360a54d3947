"""Infrastructure layer: cryptography, persistence and service implementations.

This layer implements the interfaces defined in the domain layer:
- Security primitives (key generation, AES-GCM, Argon2, HMAC)
- JWT issuance and client authentication
- SQLAlchemy persistence
- Key management, revocation, cleanup and audit services
"""
