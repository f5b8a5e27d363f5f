"""
Payroll Modules.

Persistence-backed services over the kernel and the engines:

- employees: employees, effective-dated configs, weekly schedules
- timekeeping: time-off requests, work sessions, minute samples, holidays
- attendance: monthly attendance facts
- bonus: attendance bonus synchronization and KPI decisions
- settlement: semi-monthly periods, checks, CSV export

Every service is flush-only; ``payroll_services`` owns transactions.
"""
