"""Optional helpers called from handlers and middleware.

The dispatch core never imports these.
"""
