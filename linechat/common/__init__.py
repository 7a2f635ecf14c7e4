"""
Shared definitions for the linechat server and client.
"""
