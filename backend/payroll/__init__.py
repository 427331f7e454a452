"""Lecturer pay-claim verification and approval backend."""
