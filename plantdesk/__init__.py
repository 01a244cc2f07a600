"""Client-side data core for the plant operations dashboard.

Pages never talk to the spreadsheet API directly. Reads go through the
read-through cache, writes go through the mutation gateway, and list views
apply writes optimistically before the network round-trip settles.
"""

__version__ = "1.0.0"
