"""listkeeper: multi-user to-do lists.

Session-authenticated users keep named lists of prioritised tasks.
Every read and write is scoped to the list's owner.
"""

__version__ = "0.1.0"
