"""
Bridge handlers own the transport to the RS-485 bus. A bridge acquires its transport on
connect(), hands the byte streams to the protocol processor, and releases everything on
disconnect().

BaseBridgeHandler holds the shared lifecycle: the per-bridge lock, the connection state,
the transport slot and the status transitions. Subclasses implement _open_transport() for
their medium: SerialBridgeHandler for a local serial port, IPBridgeHandler for a network
RS-485 adapter.
"""
