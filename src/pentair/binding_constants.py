"""
Identifiers shared across the binding: the binding id, the thing types it serves and the
owner tag used when claiming a serial port.
"""
from pentair.thing import ThingTypeUID

BINDING_ID = 'pentair'

# bridge types
IP_BRIDGE_THING_TYPE = ThingTypeUID(BINDING_ID, 'ip_bridge')
SERIAL_BRIDGE_THING_TYPE = ThingTypeUID(BINDING_ID, 'serial_bridge')

# leaf device types
CONTROLLER_THING_TYPE = ThingTypeUID(BINDING_ID, 'controller')
INTELLIFLO_THING_TYPE = ThingTypeUID(BINDING_ID, 'intelliflo')
INTELLICHLOR_THING_TYPE = ThingTypeUID(BINDING_ID, 'intellichlor')
INTELLICHEM_THING_TYPE = ThingTypeUID(BINDING_ID, 'intellichem')

SUPPORTED_THING_TYPES = frozenset([IP_BRIDGE_THING_TYPE, SERIAL_BRIDGE_THING_TYPE, CONTROLLER_THING_TYPE,
                                   INTELLIFLO_THING_TYPE, INTELLICHLOR_THING_TYPE, INTELLICHEM_THING_TYPE])

# tag recorded as the owner of an opened serial port
PORT_OWNER = 'pentair'

# default bus address of the bridge on the RS-485 bus
DEFAULT_BRIDGE_ID = 34
