"""
Infrastructure adapters for the assistant bounded context.

Each adapter implements a domain port (ABC) and connects
to external systems: market data APIs, databases, the LLM provider.
"""
