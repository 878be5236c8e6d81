"""
Infrastructure layer package.

Contains concrete implementations (adapters) of the ports
defined in the domain layer. This is where the chat history
database, market data APIs and the LLM client live.
"""
