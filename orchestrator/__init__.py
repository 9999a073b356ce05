"""
Hybrid query orchestration: sanitization, intent routing, text production,
deterministic evaluation and claim verification behind one entry point.

Import the concrete modules directly, for example
`from orchestrator.flow_manager import QueryOrchestrator`.
"""

__version__ = "0.1.0"
