"""
Client package for linechat.

This package contains a small interactive client for the line protocol.
"""
