"""
Conductor - multi-agent software delivery orchestrator.
"""

__version__ = "0.1.0"
