"""
Disabled-Licensed Users Report
==============================
Finds disabled Microsoft 365 accounts that still hold license assignments,
writes them to a CSV file and mails the result to an operations mailbox.

The job reads the directory only. Its single write is the report email.
"""

__version__ = "1.0.0"
