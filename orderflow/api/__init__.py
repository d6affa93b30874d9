"""
HTTP surface.

    app = create_app()                 # opens OrderFlow from the environment
    app = create_app(flow=my_flow)     # serves an already built OrderFlow
"""

from orderflow.api._app import create_app, get_flow, router

__all__ = ("create_app", "get_flow", "router")
