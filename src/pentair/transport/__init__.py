"""
The transport package provides the physical endpoints a bridge can own: a locally attached
serial port or a TCP socket to a network RS-485 adapter.

A resolver turns a configured locator into an identifier; the identifier opens a handle,
and the handle provides the input and output byte streams handed to the protocol processor.
"""
