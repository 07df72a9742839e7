"""Request-scoped dependencies: the admin gate check and the app-scoped clients.

Handlers depend on these instead of importing module globals, so a test can
put a different gate, session store or storage client on ``app.state``.
"""
