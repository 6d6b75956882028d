"""
Pentair RS-485 bridge connections

- Transport: a physical endpoint of the bus, a local serial port or a TCP socket to a network
  RS-485 adapter. A resolver turns the configured locator into an identifier, the identifier
  opens a handle, the handle provides the input and output byte streams.
- Bridge handler: owns one transport while online. connect() acquires the transport, applies
  the bus line parameters (9600 8N1, no flow control) and installs the streams into the
  protocol processor; disconnect() releases it. Failures become an offline status with a
  category and a message, they are not raised.
- Device handlers: the controller, pumps, chlorinators and chemistry controllers on the bus.
  They follow the status of their bridge.
- Handler factory: creates the handler for a thing from its type id.
- Maintenance: reconnects offline bridges, paced by a retry strategy, when the hosting platform
  calls maintain().


## Threading

No threads are started here. connect() and disconnect() are called from the platform's
threads and are serialized per bridge by the bridge lock. Opening a serial port blocks for up
to the open timeout while the port is busy.

The protocol processor reads the installed input stream on its own thread; when the bridge
disconnects the streams are cleared from the processor before the transport is closed.
"""
