"""HouseHub: household management backend.

Cache-aside reads and writes over a relational system of record, with
every change broadcast on a shared updates channel.
"""

__version__ = "0.1.0"
