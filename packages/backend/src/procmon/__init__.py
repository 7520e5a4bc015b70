"""procmon — integration process execution monitor.

Backend for the process monitoring dashboard: REST endpoints over a
simulated set of integration-platform process executions, a dashboard
aggregation, and live updates pushed over WebSocket.
"""

__version__ = "0.1.0"
