"""
User service package.

Status lifecycle rules live in ``enums`` and ``state_machine`` and have no
dependency on persistence; ``repository`` and ``service`` build the user
management workflows on top of them.
"""
