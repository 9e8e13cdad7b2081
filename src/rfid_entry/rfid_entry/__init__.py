"""RFID entry logging service.

This package is organized by feature modules (users, entries, tokens, ...)
with a thin Flask controller layer and service/repository layers underneath.
"""
