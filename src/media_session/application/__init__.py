"""
Application Layer

Coordinates the domain with infrastructure through ports:
- interfaces/: Transport and catalog ports
- services/: State machine, progress throttle, persistence stores
- surfaces/: Command producers and state observers used by views
"""
