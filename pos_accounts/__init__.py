"""
Accounts service for the ONEJA jewelry point-of-sale system.

The accounts service is a Flask application that provides the browser-facing
interfaces for registration, e-mail verification, login and logout, and the
role-gated pages of the POS (customer, employee and admin dashboards, reports,
sales views). Administrators can change the role of another account, or mark
an employee resigned, through a small JSON interface.

Accounts live in a relational credential store. A new account is a
*customer*, created unverified; a verification link is mailed at registration
and must be followed before the account can log in.

When a user authenticates, a session holding a snapshot of the account is
written to a Redis session store, and the browser is issued a signed cookie
naming it. Sessions end on logout, after a period of inactivity, or when an
administrator changes the role or status of the account.

Context
-------
Customers use the service to reach the storefront pages of the POS; employees
and administrators use it to reach the back-office pages. Every route belongs
to one access class (see :mod:`pos_accounts.auth.access`), and requests
without a matching session are refused before the route runs.
"""
