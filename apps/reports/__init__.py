"""Reports app package.

Users report other users for safety, quality, payment or conduct
problems; admins review the reports and warn, suspend or reactivate
the reported account.
"""
