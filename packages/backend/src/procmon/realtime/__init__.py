"""Real-time infrastructure — in-process hub, optional Redis relay, WebSocket.

Learn: Events flow through up to three hops:
1. Services → publish_event() (Redis PUBLISH when configured)
2. Redis relay → EventHub rooms (or straight into the hub without Redis)
3. EventHub → WebSocket → dashboard clients

Delivery is fire-and-forget. A client that misses an event re-fetches
over REST; nothing is replayed.
"""
