"""KYC identity-document extraction service."""
