"""
Request controllers for the accounts UI.

Controllers are framework-light: they receive request data, call into the
lifecycle, authenticator and session store, and return a
``(data, status_code, headers)`` tuple. Routes turn that into a Flask
response (rendering, cookies, redirects).
"""
