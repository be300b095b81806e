"""Bank Statement Notifier.

Downloads the monthly N26 account-activity PDF, extracts transactions and
the account balance from its text, and posts transactions that were not
seen before to a Discord webhook.
"""

__version__ = "1.0.0"
__author__ = "Statement Notifier Team"
