"""
TEFA Notification Engine
========================
Per-recipient messages with read/unread state.
"""
