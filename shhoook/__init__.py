"""shhoook — configuration-driven HTTP gateway to shell commands.

Endpoints are declared as data files (URI pattern, method, auth header,
parameter defaults, argv template, timeout). At startup they are compiled
into an immutable, sorted registry; each matching request resolves its
parameters, expands the argv template and runs the command under a deadline.
"""

__version__ = "1.0.0"
