"""
FinHub backend package.

Routers are grouped by domain area:
- health: liveness probe
- users: user CRUD (posts are returned nested, read-only)
- companies: companies with cost centers, accounts receivable and accounts payable

The company aggregate logic lives in services.companies and the pt-BR currency
helpers in services.money. jobs.keepalive pings the hosted instance in production.
"""
