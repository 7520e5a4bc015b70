"""In-memory storage for process executions.

Learn: Stands where a database would. Swapping it for a real table
only touches this package — the services talk to ProcessStore.
"""

from procmon.store.memory import ProcessStore, get_store, process_store

__all__ = ["ProcessStore", "get_store", "process_store"]
