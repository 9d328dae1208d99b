"""Analytics app package: role-scoped KPI overview."""
