"""
Small helpers shared by the bridge, transport and device packages: value-object mixins,
status event sources and retry strategies.
"""
