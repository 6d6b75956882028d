"""
Configuration helpers built on ConfigObj. Thing configurations are validated against a
configspec and applied to typed config objects; bridge-wide settings can be layered from
neutral, os-specific and user files.
"""
