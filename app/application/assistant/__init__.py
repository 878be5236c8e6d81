"""
Application layer for the assistant bounded context.

Use cases coordinate domain services and ports to fulfill chat,
voice and history operations. The command rule table lives here.
No framework or infrastructure imports allowed.
"""
