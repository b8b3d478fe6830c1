"""Token issuance, refresh rotation and revocation."""
