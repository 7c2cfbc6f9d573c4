"""Identity value types.

There is one principal kind (a registered user), so the authenticated
identity is just the user's primary key.
"""

from typing import NewType

UserId = NewType("UserId", int)

# Opaque session credential handed to the client in a cookie.
SessionToken = NewType("SessionToken", str)
