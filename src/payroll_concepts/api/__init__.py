"""REST API for the payroll concept engine."""
