"""Core processing engines for legalmd."""
