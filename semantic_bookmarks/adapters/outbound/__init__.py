"""Outbound adapters: remote API client and Q&A storage."""
