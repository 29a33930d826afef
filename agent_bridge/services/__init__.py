"""Verification, routing and collaborator clients."""
